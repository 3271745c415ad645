"""Default configuration values for refdata."""

DEFAULTS: dict[str, object] = {
    # Base storage location handed to the loader
    "LOCATION": "res_db",
    # Modules (or glob patterns) scanned for @resource classes
    "PACKAGES": (),
    "LOADER": "refdata.loaders.json_file:JsonLoader",
    # Import paths of listener objects, classes or callables
    "LISTENERS": (),
    # Re-run initialization on every refresh signal instead of only the first
    "REFRESH_EVENT_RELOAD": False,
}
