"""
Constants configuration

API settings, research vocabularies and media tables.
"""

from typing import Dict, List

# API settings
API_TITLE = "ReelForge API"
API_DESCRIPTION = "Turn a single idea into a reviewed, assembled video production"
API_VERSION = "1.0.0"

# CORS origins
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Reference documents
SUPPORTED_DOCUMENT_EXTENSIONS = [".pdf", ".txt", ".md", ".docx"]

# Research
DEPTH_QUERY_COUNTS: Dict[str, int] = {
    "shallow": 3,
    "medium": 5,
    "deep": 8,
}

QUERY_ASPECTS: Dict[str, List[str]] = {
    "en": [
        "overview and definition",
        "historical background and context",
        "current state and recent developments",
        "key facts and statistics",
        "expert analysis and perspectives",
        "related topics and connections",
        "challenges and controversies",
        "future implications and trends",
    ],
    "ar": [
        "نظرة عامة وتعريف",
        "الخلفية التاريخية والسياق",
        "الوضع الراهن والتطورات الأخيرة",
        "الحقائق والإحصائيات الرئيسية",
        "التحليل وآراء الخبراء",
        "الموضوعات ذات الصلة والروابط",
        "التحديات والجدل",
        "الآثار المستقبلية والاتجاهات",
    ],
}

DOCUMENT_CHUNK_SIZE = 1000
DEDUP_SIMILARITY_THRESHOLD = 0.9
REFERENCE_RELEVANCE = 1.0
QUERY_RELEVANCE_MAX = 0.85
DEFAULT_QUERY_RELEVANCE = 0.5

# Music video tempo by genre
GENRE_BPM: Dict[str, int] = {
    "Pop": 120,
    "Rock": 130,
    "Hip Hop": 95,
    "Electronic": 128,
    "Jazz": 80,
    "Classical": 70,
    "R&B": 90,
    "Country": 100,
    "Indie": 110,
    "Ambient": 60,
}
DEFAULT_BPM = 120

# Narration pace used for duration estimates (~140 words per minute)
WORDS_PER_SECOND = 140 / 60

__all__ = [
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "CORS_ORIGINS",
    "SUPPORTED_DOCUMENT_EXTENSIONS",
    "DEPTH_QUERY_COUNTS",
    "QUERY_ASPECTS",
    "DOCUMENT_CHUNK_SIZE",
    "DEDUP_SIMILARITY_THRESHOLD",
    "REFERENCE_RELEVANCE",
    "QUERY_RELEVANCE_MAX",
    "DEFAULT_QUERY_RELEVANCE",
    "GENRE_BPM",
    "DEFAULT_BPM",
    "WORDS_PER_SECOND",
]
