# CRDW Sweep & Specify
# ====================
"""
Curation core for the CRDW Sweep & Specify dictionary tool.

Subpackages:
- dictionary: source system resolution, row unification, keyword matching
- selection: selection state, keyword filtering, curation sessions
- data: raw dictionary file loading
- export: CSV serialization and search-terms manifests
- settings: cutover dates and other configuration
"""

__version__ = "0.1.0"
