from .edit_distance import fold, levenshtein, register_sql_levenshtein

__all__ = [
    "fold",
    "levenshtein",
    "register_sql_levenshtein",
]
