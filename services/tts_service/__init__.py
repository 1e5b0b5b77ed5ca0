"""Text-to-speech synthesis for summary narration."""
