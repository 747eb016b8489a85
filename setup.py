from setuptools import setup, find_packages

setup(
    name="convomap",
    version="0.1.0",
    packages=find_packages(include=["convomap", "convomap.*"]),
    python_requires=">=3.10",
    install_requires=[
        "setuptools",
        # "pyaudio",  # Optional: only needed for live microphone capture
        "SpeechRecognition",
        "fastapi",
        "uvicorn",
        "pydantic>=2.0",
        "python-dotenv",
        "google-genai",
        "httpx",
        "firebase-admin",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio",
        ],
    },
)
