"""
# Coverage instrumentation for s-expression programs.
"""
