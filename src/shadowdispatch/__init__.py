"""Public package API for shadowdispatch."""

from shadowdispatch.declarations import RealObject
from shadowdispatch.declarations import implements
from shadowdispatch.engine import ShadowWrangler
from shadowdispatch.errors import ConfigurationError
from shadowdispatch.errors import DispatchError
from shadowdispatch.errors import ShadowCreationError
from shadowdispatch.errors import ShadowDispatchError
from shadowdispatch.instrumentation import attach_shadow
from shadowdispatch.instrumentation import shadow_of
from shadowdispatch.plans import DO_NOTHING_PLAN
from shadowdispatch.plans import Plan
from shadowdispatch.plans import ShadowMethodPlan
from shadowdispatch.settings import WranglerSettings
from shadowdispatch.shadow_map import ShadowConfig
from shadowdispatch.shadow_map import ShadowMap

__all__: list[str] = [
    "DO_NOTHING_PLAN",
    "ConfigurationError",
    "DispatchError",
    "Plan",
    "RealObject",
    "ShadowConfig",
    "ShadowCreationError",
    "ShadowDispatchError",
    "ShadowMap",
    "ShadowMethodPlan",
    "ShadowWrangler",
    "WranglerSettings",
    "attach_shadow",
    "implements",
    "shadow_of",
]
