"""
Plugin Hook Constants

Centralised list of hook names that plugins can subscribe to.
Hook names follow the `category.action` convention.
"""

from __future__ import annotations

# ── Taxonomy registration ─────────────────────────────────────────────────────
# Subscribers return a configuration record: plugin_name, content_types and
# the collection/entity taxonomy blocks with their default terms.
HOOK_ENTITY_COLLECTION_TAXONOMY_RUN = "entity_collection_taxonomy.run"

# ── Term lifecycle ────────────────────────────────────────────────────────────
HOOK_TERM_CREATED = "term.created"
HOOK_TERM_EDITED = "term.edited"
HOOK_TERM_DELETED = "term.deleted"

# ── Content hooks ─────────────────────────────────────────────────────────────
HOOK_CONTENT_SAVED = "content.saved"

# ── Master list ───────────────────────────────────────────────────────────────
ALL_HOOKS: list[str] = [
    HOOK_ENTITY_COLLECTION_TAXONOMY_RUN,
    HOOK_TERM_CREATED,
    HOOK_TERM_EDITED,
    HOOK_TERM_DELETED,
    HOOK_CONTENT_SAVED,
]
