from sourcepatch.policy.fallback import FallbackPolicy, PolicyResult, override_selector

__all__ = ["FallbackPolicy", "PolicyResult", "override_selector"]
