"""Collection of deployment variables into typed entries.

Entry point::

    from osdinfo.collect import collect, MappingSource

    entries = collect(MappingSource(variables), config)
"""

from ._collector import collect, elapsed_entries, sanitize_name, type_entry
from ._defaults import DeploymentProduct, detect_product
from ._sources import EnvironSource, JsonFileSource, MappingSource, VariableSource
from ._timezone import Normalized, normalize
from ._values import Inference, infer_value, parse_datetime

__all__ = [
    "DeploymentProduct",
    "EnvironSource",
    "Inference",
    "JsonFileSource",
    "MappingSource",
    "Normalized",
    "VariableSource",
    "collect",
    "detect_product",
    "elapsed_entries",
    "infer_value",
    "normalize",
    "parse_datetime",
    "sanitize_name",
    "type_entry",
]
