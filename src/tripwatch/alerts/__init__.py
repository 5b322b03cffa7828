"""Operator alerts: sound, durable counter and banner presentation."""

from tripwatch.alerts.audio import CommandSoundPlayer, SineToneSynthesizer, SoundPlayer, ToneSynthesizer
from tripwatch.alerts.controller import AlertPresentationController, BannerPresenter, LoggingBannerPresenter

__all__ = [
    "AlertPresentationController",
    "BannerPresenter",
    "CommandSoundPlayer",
    "LoggingBannerPresenter",
    "SineToneSynthesizer",
    "SoundPlayer",
    "ToneSynthesizer",
]
