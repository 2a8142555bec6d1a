from .overlays import SuggestionPopup
from .pr_list import PRList
from .status import StatusManager

__all__ = ["PRList", "StatusManager", "SuggestionPopup"]
