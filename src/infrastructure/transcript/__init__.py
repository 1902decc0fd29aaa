"""トランスクリプトインフラストラクチャ"""

from infrastructure.transcript.transcript_reader import TranscriptReader

__all__ = [
    "TranscriptReader",
]
