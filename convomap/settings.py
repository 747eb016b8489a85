"""
Central settings file for ConvoMap
Values are read from the environment (entry points load .env first)
"""

import os

# Environment variables
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Capture / chunking
CHUNK_INTERVAL_SECONDS = float(os.getenv("CHUNK_INTERVAL_SECONDS", 15))

# Optional external classifier endpoint; when unset Gemini (or the local heuristic) is used
CLASSIFIER_URL = os.getenv("CLASSIFIER_URL")
CLASSIFIER_API_KEY = os.getenv("CLASSIFIER_API_KEY")
CLASSIFIER_TIMEOUT_SECONDS = float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", 10))

# Persistence
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").lower()
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")
CONVERSATION_LIST_LIMIT = int(os.getenv("CONVERSATION_LIST_LIMIT", 20))
TRANSCRIPT_LIST_LIMIT = int(os.getenv("TRANSCRIPT_LIST_LIMIT", 50))
PERSISTENCE_DRAIN_SECONDS = float(os.getenv("PERSISTENCE_DRAIN_SECONDS", 5))

# Server
CONVOMAP_PORT = int(os.getenv("CONVOMAP_PORT", 8001))
# Stopped sessions kept for graph lookups after /stop, oldest evicted first
STOPPED_SESSION_RETENTION = int(os.getenv("STOPPED_SESSION_RETENTION", 20))

# Validate configuration
if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ValueError(f"Unknown LOG_LEVEL: {LOG_LEVEL}")
if CHUNK_INTERVAL_SECONDS <= 0:
    raise ValueError("CHUNK_INTERVAL_SECONDS must be positive")
if CLASSIFIER_TIMEOUT_SECONDS <= 0:
    raise ValueError("CLASSIFIER_TIMEOUT_SECONDS must be positive")
if STORAGE_BACKEND not in ("memory", "firestore"):
    raise ValueError("STORAGE_BACKEND must be 'memory' or 'firestore'")
if CONVERSATION_LIST_LIMIT < 1 or TRANSCRIPT_LIST_LIMIT < 1:
    raise ValueError("List limits must be at least 1")
if STOPPED_SESSION_RETENTION < 0:
    raise ValueError("STOPPED_SESSION_RETENTION cannot be negative")
