# =============================================================================
# agent/__init__.py
# =============================================================================
# The orchestration layer: everything that talks to the language model.
#
#   selector.py     - which (backend, tool) pair answers the query
#   invoker.py      - what arguments to call it with, and the call itself
#   synthesizer.py  - how to phrase the final answer
#   session.py      - the per-query state machine tying them together
#
# Supporting modules: llm.py (model adapter), prompt.py (prompt text),
# config.py (settings).  The event log lives in core/events.py.
#
# The agent layer decides WHICH tool to call and WHEN.  It does not know how
# a backend process is started; that is backends/.
# =============================================================================
