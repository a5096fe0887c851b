import importlib

mod = "movementprofiler"
class LazyLoader:
    """
    Lazy loader for the movementprofiler functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "FieldObserver": (f"{mod}.fieldobserver", "FieldObserver"),
    "SchemaTracker": (f"{mod}.schematracker", "SchemaTracker"),
    "TrackerSnapshot": (f"{mod}.schematracker", "TrackerSnapshot"),
    "save_snapshot": (f"{mod}.schematracker", "save_snapshot"),
    "load_snapshot": (f"{mod}.schematracker", "load_snapshot"),
    "DirectoryAnalyzer": (f"{mod}.directoryanalyzer", "DirectoryAnalyzer"),
    "DirectoryNotFound": (f"{mod}.directoryanalyzer", "DirectoryNotFound"),
    "analyze_directory": (f"{mod}.directoryanalyzer", "analyze_directory"),
    "ReportSynthesizer": (f"{mod}.reportsynth", "ReportSynthesizer"),
    "AnalysisReport": (f"{mod}.reportsynth", "AnalysisReport"),
    "render_report": (f"{mod}.reportsynth", "render_report"),
    "write_report": (f"{mod}.reportsynth", "write_report"),
    "LookupValueCollector": (f"{mod}.lookupcollector", "LookupValueCollector"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    if name.startswith('__'):
        raise AttributeError(name)
    return getattr(_lazy_loader, name)
