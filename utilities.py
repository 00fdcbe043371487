# utilities.py
import math

# ========================================
# scalar helpers shared by colors, vectors and textures
# ========================================

def clip(x, lo, hi):
    return min(max(x, lo), hi)

def clip01(x):
    return clip(x, 0.0, 1.0)

def interpolate(alpha, a, b):
    """
    Linear interpolation, alpha=0 -> a, alpha=1 -> b.
    Works for floats and for anything with + and scalar * (Vec2, Color).
    """
    return a * (1.0 - alpha) + b * alpha

def sinusoid(x: float) -> float:
    # cosine ease on [0,1]: 0->0, 0.5->0.5, 1->1
    return (1.0 - math.cos(x * math.pi)) / 2.0

def remap_interval(x: float, in0: float, in1: float, out0: float, out1: float) -> float:
    """
    Map x from [in0,in1] onto [out0,out1]. A zero-width input interval
    maps everything to out0 instead of dividing by zero.
    """
    if in0 == in1:
        return out0
    return interpolate((x - in0) / (in1 - in0), out0, out1)

def remap_interval_clip(x: float, in0: float, in1: float, out0: float, out1: float) -> float:
    if in0 == in1:
        # step at in0
        return out0 if x < in0 else out1
    return interpolate(clip01((x - in0) / (in1 - in0)), out0, out1)

def fmod_floor(x: float, y: float) -> float:
    # modulo with floor semantics: result takes the sign of y
    return x - y * math.floor(x / y)

def within_epsilon(a, b, epsilon: float) -> bool:
    if hasattr(a, "within_epsilon"):
        return a.within_epsilon(b, epsilon)
    return abs(a - b) <= epsilon
