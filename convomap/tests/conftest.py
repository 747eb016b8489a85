import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

# Tests run against in-memory storage and the local heuristics only
os.environ['STORAGE_BACKEND'] = 'memory'
for key in ('CLASSIFIER_URL', 'GEMINI_API_KEY', 'GOOGLE_API_KEY'):
    os.environ.pop(key, None)
