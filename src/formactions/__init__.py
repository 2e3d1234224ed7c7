"""formactions — server actions with extracted loaders, built for Python projects.

Discovers action modules under ``server/actions/``, registers their
``handler`` as a POST route, extracts each ``loader`` into its own generated
module served as a GET route, and keeps a typed declaration stub of every
loader up to date while files change.

Quick start::

    import asyncio
    import formactions

    pipeline = formactions.FormActionsPipeline(formactions.load_config(Path(".")))
    result = asyncio.run(pipeline.run_full_scan())

Two entry points::

    await pipeline.run_full_scan()            # Build: walk, extract, declare
    await pipeline.handle_file_event(event)   # Watch: one file at a time

"""

__version__ = "0.1.0-dev"
__all__ = [
    "FileEvent",
    "FormActionsConfig",
    "FormActionsPipeline",
    "__version__",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import formactions`` fast (no watchfiles import until needed).
    """
    if name == "FormActionsConfig":
        from formactions.config import FormActionsConfig

        return FormActionsConfig

    if name == "load_config":
        from formactions.config_loader import load_config

        return load_config

    if name == "FormActionsPipeline":
        from formactions.pipeline import FormActionsPipeline

        return FormActionsPipeline

    if name == "FileEvent":
        from formactions.reactive.watcher import FileEvent

        return FileEvent

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
