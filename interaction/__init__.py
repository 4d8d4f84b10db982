"""Interaction package utilities."""

from interaction.speech import Announcement, SpeechPlayer, SpeechPolicy, SpeechSettings

__all__ = ["Announcement", "SpeechPlayer", "SpeechPolicy", "SpeechSettings"]
