import importlib

__version__ = "0.1.0"

mod = "xschema"
class LazyLoader:
    """
    Lazy loader for the xschema API to keep import time low.
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
            try:
                return self._load_module(f"{mod}.{item}")
            except ModuleNotFoundError as e:
                if e.name != f"{mod}.{item}":
                    raise
                raise AttributeError(f"module {mod!r} has no attribute {item!r}") from e

# Define the public names and their corresponding module paths
_mappings = {
    "validate": (f"{mod}.validation", "validate"),
    "is_valid": (f"{mod}.validation", "is_valid"),
    "validate_or_raise": (f"{mod}.validation", "validate_or_raise"),
    "validate_file": (f"{mod}.validation", "validate_file"),
    "ValidationResult": (f"{mod}.validation", "ValidationResult"),
    "Validator": (f"{mod}.validator", "Validator"),
    "Ref": (f"{mod}.ref", "Ref"),
    "Root": (f"{mod}.ref", "Root"),
    "build_root": (f"{mod}.ref", "build_root"),
    "resolve": (f"{mod}.ref", "resolve"),
    "convert_json_schema": (f"{mod}.jsonstoxschema", "convert_json_schema"),
    "convert_json_schema_file": (f"{mod}.jsonstoxschema", "convert_json_schema_file"),
    "Schema": (f"{mod}.schema", "Schema"),
    "NullSchema": (f"{mod}.schema", "NullSchema"),
    "BooleanSchema": (f"{mod}.schema", "BooleanSchema"),
    "IntegerSchema": (f"{mod}.schema", "IntegerSchema"),
    "FloatSchema": (f"{mod}.schema", "FloatSchema"),
    "NumberSchema": (f"{mod}.schema", "NumberSchema"),
    "StringSchema": (f"{mod}.schema", "StringSchema"),
    "ListSchema": (f"{mod}.schema", "ListSchema"),
    "MapSchema": (f"{mod}.schema", "MapSchema"),
    "AnySchema": (f"{mod}.schema", "AnySchema"),
    "KeyForm": (f"{mod}.schema", "KeyForm"),
    "Symbol": (f"{mod}.schema", "Symbol"),
    "TRUE_SCHEMA": (f"{mod}.schema", "TRUE_SCHEMA"),
    "FALSE_SCHEMA": (f"{mod}.schema", "FALSE_SCHEMA"),
    "SchemaError": (f"{mod}.exceptions", "SchemaError"),
    "RefError": (f"{mod}.exceptions", "RefError"),
    "ValidationError": (f"{mod}.exceptions", "ValidationError"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
