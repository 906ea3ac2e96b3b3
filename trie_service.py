"""
Trie Lookup Service — a REST API for prefix-based autocomplete.

Exposes :class:`prefix_trie.Trie` as a JSON API with endpoints for inserting
keys, exact lookup, prefix queries, deletion and clearing. Built with Flask.
Designed for containerized deployment; configured through environment
variables (``PORT``, ``FLASK_DEBUG``, ``TRIE_IGNORE_CASE``, ``TRIE_SEED``).
"""

from __future__ import annotations

import heapq
import logging
import os
import time
from typing import Optional

from flask import Flask, current_app, jsonify, request

from prefix_trie import IGNORE_CASE, ORDINAL, DuplicateKeyError, InvalidKeyError, Trie, TrieError

logger = logging.getLogger("trie-service")

MAX_KEY_LENGTH = 256
DEFAULT_LIMIT = 25

# Seed with sample data so the service is useful out-of-the-box
SEED_WORDS = [
    "algorithm", "api", "application", "array", "authentication",
    "binary", "branch", "buffer", "build", "byte",
    "cache", "callback", "class", "client", "compiler",
    "container", "cpu", "database", "debug", "deploy",
    "docker", "endpoint", "exception", "flask", "function",
    "gateway", "git", "graph", "hash", "heap",
    "index", "interface", "json", "kernel", "lambda",
    "linked-list", "load-balancer", "memory", "microservice", "middleware",
    "node", "object", "parser", "pipeline", "pointer",
    "prefix-tree", "process", "queue", "recursion", "redis",
    "request", "response", "rest", "router", "runtime",
    "schema", "server", "socket", "stack", "stream",
    "thread", "token", "tree", "trie", "tuple",
    "upstream", "variable", "version", "webhook", "worker",
]


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) == "1"


def create_app(trie: Optional[Trie] = None, seed: Optional[bool] = None) -> Flask:
    """Build the service around *trie* (a fresh one from the environment if omitted)."""
    if trie is None:
        comparer = IGNORE_CASE if _env_flag("TRIE_IGNORE_CASE", "0") else ORDINAL
        trie = Trie(comparer=comparer)
    if seed is None:
        seed = _env_flag("TRIE_SEED", "1")
    if seed:
        for word in SEED_WORDS:
            trie[word] = word
        logger.info("Seeded trie with %d words", len(SEED_WORDS))

    app = Flask(__name__)
    app.config["TRIE"] = trie
    app.config["START_TIME"] = time.time()
    app.config["SEEDED"] = len(SEED_WORDS) if seed else 0

    app.register_error_handler(TrieError, _trie_error)
    app.add_url_rule("/", view_func=index)
    app.add_url_rule("/health", view_func=health)
    app.add_url_rule("/stats", view_func=stats)
    app.add_url_rule("/search", view_func=search)
    app.add_url_rule("/prefix", view_func=prefix)
    app.add_url_rule("/insert", view_func=insert, methods=["POST"])
    app.add_url_rule("/delete", view_func=delete, methods=["DELETE"])
    app.add_url_rule("/clear", view_func=clear, methods=["POST"])
    return app


def _trie() -> Trie:
    return current_app.config["TRIE"]


def _uptime() -> float:
    return round(time.time() - current_app.config["START_TIME"], 2)


def _query() -> str:
    return request.args.get("q", "").strip()


def _trie_error(error: TrieError):
    if isinstance(error, DuplicateKeyError):
        status = 409
    elif isinstance(error, KeyError):
        status = 404
    else:
        status = 400
    return jsonify({"error": str(error), "type": type(error).__name__}), status


# ── Health & Info ─────────────────────────────────────────────────────────

def index():
    """Landing page with API documentation."""
    return jsonify({
        "service": "Trie Lookup Service",
        "version": "1.0.0",
        "description": "REST API for prefix-based autocomplete powered by a Trie",
        "endpoints": {
            "GET  /":                "This help page",
            "GET  /health":          "Health check",
            "GET  /stats":           "Trie statistics",
            "GET  /search?q=<key>":  "Exact match lookup",
            "GET  /prefix?q=<pfx>":  "Autocomplete — entries whose key starts with prefix",
            "POST /insert":          "Insert a key  {\"key\": \"...\", \"value\": \"...\", \"replace\": false}",
            "DELETE /delete?q=<key>":"Delete a key",
            "POST /clear":           "Remove every key",
        },
    })


def health():
    """Liveness / readiness probe."""
    return jsonify({
        "status": "healthy",
        "uptime_seconds": _uptime(),
        "trie_size": len(_trie()),
    })


def stats():
    """Trie statistics."""
    trie = _trie()
    return jsonify({
        "total_keys": len(trie),
        "uptime_seconds": _uptime(),
        "seed_words": current_app.config["SEEDED"],
        "comparer": trie.comparer.name,
    })


# ── Core API ──────────────────────────────────────────────────────────────

def search():
    """Exact key lookup."""
    q = _query()
    if not q:
        return jsonify({"error": "Missing query parameter 'q'"}), 400
    found, value = _trie().try_get_value(q)
    return jsonify({"key": q, "found": found, "value": value})


def prefix():
    """Return the entries whose key starts with a given prefix (autocomplete)."""
    q = _query()
    limit = request.args.get("limit", str(DEFAULT_LIMIT), type=str)
    try:
        limit = int(limit)
    except ValueError:
        limit = DEFAULT_LIMIT

    if not q:
        return jsonify({"error": "Missing query parameter 'q'"}), 400

    # Traversal order is unspecified; keep the smallest keys for stable output.
    entries = heapq.nsmallest(max(limit, 0), _trie().get_by_prefix(q), key=lambda e: e.key)

    return jsonify({
        "prefix": q,
        "count": len(entries),
        "matches": [entry.key for entry in entries],
        "entries": [{"key": entry.key, "value": entry.value} for entry in entries],
    })


def insert():
    """Insert a key into the trie."""
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    key = body.get("key", "")
    if not isinstance(key, str):
        raise InvalidKeyError(f"key must be a string, not {type(key).__name__}")
    key = key.strip()
    value = body.get("value", key)

    if not key:
        return jsonify({"error": "Missing 'key' in request body"}), 400
    if len(key) > MAX_KEY_LENGTH:
        return jsonify({"error": f"Key too long (max {MAX_KEY_LENGTH} chars)"}), 400

    trie = _trie()
    if body.get("replace"):
        trie[key] = value
    else:
        trie.add(key, value)
    logger.info("Inserted key=%s", key)
    return jsonify({"inserted": key, "value": value, "trie_size": len(trie)}), 201


def delete():
    """Delete a key from the trie."""
    q = _query()
    if not q:
        return jsonify({"error": "Missing query parameter 'q'"}), 400

    trie = _trie()
    deleted = trie.remove(q)
    if deleted:
        logger.info("Deleted key=%s", q)
    status = 200 if deleted else 404
    return jsonify({"key": q, "deleted": deleted, "trie_size": len(trie)}), status


def clear():
    """Remove every key from the trie."""
    trie = _trie()
    removed = len(trie)
    trie.clear()
    logger.info("Cleared %d keys", removed)
    return jsonify({"cleared": removed, "trie_size": len(trie)})


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    app = create_app()
    port = int(os.environ.get("PORT", 8080))
    debug = _env_flag("FLASK_DEBUG", "0")
    logger.info("Starting Trie Lookup Service on port %d", port)
    app.run(host="0.0.0.0", port=port, debug=debug)
