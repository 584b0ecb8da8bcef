# =============================================================================
# backends/__init__.py
# =============================================================================
# Backend lifecycle: spawning MCP servers over stdio, listing and calling
# their tools, and discovering every configured candidate.
#
# This package knows about MCP but nothing about language models.  The agent/
# package decides WHICH tool to call; backends/ only knows HOW.
# =============================================================================
