"""Subtitle handling for season summaries.

This package handles:
- SRT parsing and serialization
- Episode identification from filenames
- Season timeline rendering for moment selection
- Remapping subtitles onto the concatenated clip timeline
- Narration subtitle segmentation
"""

__version__ = "1.0.0"
