"""Centralized user-facing text for the launcher CLI."""

from __future__ import annotations

class Styles:
    ERROR = "red"
    WARNING = "yellow"
    SUCCESS = "green"
    INFO = "dim"
    TITLE = "bold cyan"
    TABLE_HEADER = "bold magenta"
    HIGHLIGHT = "bold black on white"


class Messages:
    APP_HELP = "Launcher – type a query, pick an app, file, URL or command, and run it."
    HELP_QUERY = "Text used to fuzzy-match apps, executables and files."
    HELP_SEARCH_TOP = "Number of fuzzy matches to display (defaults to max_results)."
    HELP_SEARCH_FORMAT = "Output format: rich table or tab-separated porcelain lines."
    HELP_VERBOSE = "Enable debug logging."
    HELP_CONFIG_PATH = "Read configuration from this file instead of the default."
    HELP_SHOW_CONFIG = "Show current configuration."
    HELP_EDIT_CONFIG = "Open the configuration file in your editor."
    HELP_SET_EDITOR = "Set the editor command used to open text files."
    HELP_CLEAR_EDITOR = "Remove the configured editor and fall back to $VISUAL/$EDITOR."
    HELP_SET_MAX_RESULTS = "Set how many fuzzy matches are shown."
    HELP_SET_ENGINE = "Set the fuzzy engine (skim or fuse)."
    HELP_ADD_APP_LOCATION = "Append a directory to the app scan locations."
    HELP_CLEAR_APP_LOCATIONS = "Remove all app scan locations."
    HELP_RESET_CONFIG = "Overwrite the configuration file with built-in defaults."

    PROMPT = "Query> "
    INFO_PRESS_ANY_KEY = "<Press any key to exit>"
    INFO_NO_RESULTS = "No results."
    INFO_CONFIG_SUMMARY = (
        "Config file: {path}\n"
        "App locations: {locations}\n"
        "Editor: {editor}\n"
        "Max results: {max_results}\n"
        "Fuzzy engine: {engine}\n"
        "Rank concurrency: {concurrency}"
    )
    INFO_CONFIG_UPDATED = "Configuration saved to {path}."
    INFO_CONFIG_RESET = "Configuration reset to defaults at {path}."
    INFO_CONFIG_EDITING = "Opening {path} with {editor}..."
    INFO_EDITOR_AUTO = "auto ($VISUAL / $EDITOR)"
    INFO_LOCATIONS_NONE = "(none)"

    ERROR_NOT_A_TTY = "Interactive mode needs a terminal on stdin and stdout."
    ERROR_ENGINE_INVALID = "Unsupported fuzzy engine '{value}'. Allowed values: {allowed}."
    ERROR_CONFIG_VALUE_INVALID = "Invalid value for config field '{field}'."
    ERROR_MAX_RESULTS_INVALID = "max_results must be >= 1."
    ERROR_CONCURRENCY_INVALID = "rank_concurrency must be >= 1."
    ERROR_EDITOR_INVALID = "Cannot parse editor command `{editor}`: {reason}."
    ERROR_EDITOR_NOT_FOUND = (
        "No editor found. Set one with `launcher config --set-editor <command>` or $EDITOR."
    )
    ERROR_LAUNCH_FAILED = "`{command}` exited with status {code}."
    ERROR_LAUNCH_UNEXPECTED = "Launching {target} failed: {reason}."
    ERROR_LAUNCH_MISSING = "Unable to run `{command}`: {reason}."
    ERROR_EMPTY_QUERY = "Query text must not be empty."

    TABLE_TITLE = "Launcher results"
    TABLE_HEADER_INDEX = "#"
    TABLE_HEADER_KIND = "Kind"
    TABLE_HEADER_TARGET = "Target"
