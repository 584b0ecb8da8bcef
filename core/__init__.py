# =============================================================================
# core/__init__.py
# =============================================================================
# Pure logic for the tool router: data models, the error taxonomy, the tool
# registry, the strict response grammar, result normalization and the event
# log that every layer reports to.
#
# Nothing in this package imports MCP or google-adk, and the only output is
# the event log handing lines to stdlib logging.  It can be exercised in a
# bare interpreter with no backends and no model.
# =============================================================================
