"""Application configuration constants."""

from __future__ import annotations

import os
from dotenv import load_dotenv

load_dotenv()

from datetime import timezone
from pathlib import Path
from typing import List

BASE_DIR = Path(__file__).resolve().parent.parent
DB_NAME = os.getenv("DB_NAME", "realecho.db")
DB_PATH = str(BASE_DIR / DB_NAME)

TIMEZONE = timezone.utc

# Scoring policy
PROBLEM_WORD_THRESHOLD: float = 80.0
TOP_PROBLEM_WORDS: int = 3
GOOD_SCORE: float = 80.0
OKAY_SCORE: float = 60.0
PHONEME_ISSUE_THRESHOLD: float = 70.0
COACHING_FALLBACK_WORDS: int = 3

# CORS
CORS_ORIGINS: List[str] = os.getenv("CORS_ORIGINS", "*").split(",")

# API Server
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_RELOAD = os.getenv("API_RELOAD", "True").lower() in ("true", "1", "yes")

# Azure Speech (pronunciation assessment)
AZURE_SPEECH_KEY = os.getenv("AZURE_SPEECH_KEY")
AZURE_SPEECH_REGION = os.getenv("AZURE_SPEECH_REGION")
SPEECH_LANGUAGE = os.getenv("SPEECH_LANGUAGE", "en-US")
NBEST_PHONEME_COUNT = int(os.getenv("NBEST_PHONEME_COUNT", "5"))
RECOGNITION_TIMEOUT_S = float(os.getenv("RECOGNITION_TIMEOUT_S", "300"))

# ElevenLabs conversational agent
ELEVENLABS_AGENT_ID = os.getenv("ELEVENLABS_AGENT_ID")
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY")
ELEVENLABS_API_URL = os.getenv("ELEVENLABS_API_URL", "https://api.elevenlabs.io")
