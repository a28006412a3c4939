from enum import Enum
from typing import Optional, Union


class GroupSortPosition(Enum):
    TOP = "top"
    BOTTOM = "bottom"
    NONE = "none"


class Options:
    def __init__(
        self,
        bundle_id_prefix: Optional[str] = None,
        carthage_build_path: Optional[str] = None,
        carthage_executable_path: Optional[str] = None,
        transitively_link_dependencies: bool = False,
        group_sort_position: Union[str, GroupSortPosition] = GroupSortPosition.BOTTOM,
        default_config: Optional[str] = None,
        development_language: Optional[str] = None,
        uses_tabs: Optional[bool] = None,
        indent_width: Optional[int] = None,
        tab_width: Optional[int] = None,
        **kwargs
    ):
        self.bundle_id_prefix = bundle_id_prefix
        self.carthage_build_path = carthage_build_path
        self.carthage_executable_path = carthage_executable_path
        self.transitively_link_dependencies = transitively_link_dependencies
        self.group_sort_position = GroupSortPosition(group_sort_position)
        self.default_config = default_config
        self.development_language = development_language
        self.uses_tabs = uses_tabs
        self.indent_width = indent_width
        self.tab_width = tab_width
        self.__dict__.update(kwargs)
