"""osdinfo export: schema text generation for collected entries.

Public API::

    from osdinfo.export import synthesize
    mof_text = synthesize(entries, r"root\\cimv2", "OSDInfo")
"""

from .mof import MOFWriter, build_schema, synthesize, to_mof

__all__ = ["MOFWriter", "build_schema", "synthesize", "to_mof"]
