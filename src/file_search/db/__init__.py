from .schema import (
    get_db_path,
    open_connection,
    create_schema,
    seed_defaults,
    detect_schema_state,
    migrate,
    init_database,
    SchemaKind,
    SchemaState,
    SCHEMA_VERSION,
)
from .path_repo import (
    PathRow,
    PathDetail,
    StoreStats,
    normalize_path,
    find_path_by_exact_path,
    require_path,
    add_path,
    add_paths,
    remove_path,
    get_path_detail,
    get_stats,
)
from .category_repo import (
    CategoryRow,
    list_categories,
    find_category,
    create_category,
    add_path_to_category,
    remove_path_from_category,
    list_path_categories,
)
from .tag_repo import (
    TagRow,
    list_tags,
    find_tag,
    create_tag,
    add_tag_to_path,
    add_path_to_tag,
    remove_path_from_tag,
    list_path_tags,
)
from .settings_repo import (
    get_int_setting,
    set_int_setting,
    get_string_setting,
    set_string_setting,
    list_settings,
)
from .path_query import (
    PathSearch,
    CategoryFilter,
    TagFilter,
    NameContains,
    search_paths,
)

__all__ = [
    "get_db_path",
    "open_connection",
    "create_schema",
    "seed_defaults",
    "detect_schema_state",
    "migrate",
    "init_database",
    "SchemaKind",
    "SchemaState",
    "SCHEMA_VERSION",
    "PathRow",
    "PathDetail",
    "StoreStats",
    "normalize_path",
    "find_path_by_exact_path",
    "require_path",
    "add_path",
    "add_paths",
    "remove_path",
    "get_path_detail",
    "get_stats",
    "CategoryRow",
    "list_categories",
    "find_category",
    "create_category",
    "add_path_to_category",
    "remove_path_from_category",
    "list_path_categories",
    "TagRow",
    "list_tags",
    "find_tag",
    "create_tag",
    "add_tag_to_path",
    "add_path_to_tag",
    "remove_path_from_tag",
    "list_path_tags",
    "get_int_setting",
    "set_int_setting",
    "get_string_setting",
    "set_string_setting",
    "list_settings",
    "PathSearch",
    "CategoryFilter",
    "TagFilter",
    "NameContains",
    "search_paths",
]
