"""
hdrgen.core: shared data model used by the front end and the ABI passes.

Modules:
  - span: source locations carried by items and diagnostics
  - diagnostics: Diagnostic record and the per-unit DiagnosticSink
  - types_core: TypeNode variants produced by type resolution
  - items: module tree items and the ResolvedUnit bundle
"""

__all__ = [
	"span",
	"diagnostics",
	"types_core",
	"items",
]
