"""Google Ads lead → ElevenLabs outbound call relay."""
__version__ = "1.0.0"
