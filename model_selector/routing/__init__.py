"""
Routing - classify turns and decide which model a session should run on.

The stateless pieces are exported here. The classifier and the session
router depend on the configuration module, import them from their modules.
"""

from model_selector.routing.collaboration import complement_of, find_peer_model
from model_selector.routing.signals import SIMPLE_CATEGORY, match_rules
from model_selector.routing.triggers import TriggerMatcher, matches_any

__all__ = [
    "SIMPLE_CATEGORY",
    "TriggerMatcher",
    "complement_of",
    "find_peer_model",
    "match_rules",
    "matches_any",
]
