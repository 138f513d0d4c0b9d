import importlib

mod = "schemaresolve"
class LazyLoader:
    """
    Lazy loader for the schemaresolve functions to keep import time low.
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
        elif item.startswith('__'):
            raise AttributeError(item)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "resolve_values": (f"{mod}.resolve", "resolve_values"),
    "ResolveResult": (f"{mod}.resolve", "ResolveResult"),
    "SchemaResolver": (f"{mod}.resolve", "SchemaResolver"),
    "validate_value": (f"{mod}.validate", "validate_value"),
    "SchemaValidator": (f"{mod}.validate", "SchemaValidator"),
    "merge_schemas": (f"{mod}.merge", "merge_schemas"),
    "resolve_reference": (f"{mod}.refs", "resolve_reference"),
    "ResolveOptions": (f"{mod}.options", "ResolveOptions"),
    "MISSING": (f"{mod}.common", "MISSING"),
    "SchemaResolveError": (f"{mod}.errors", "SchemaResolveError"),
    "SchemaMergeError": (f"{mod}.errors", "SchemaMergeError"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
