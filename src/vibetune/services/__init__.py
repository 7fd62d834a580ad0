"""Third-party service clients."""

from vibetune.services.analytics import AnalyticsTracker
from vibetune.services.deepgram import DeepgramClient
from vibetune.services.supabase import SupabaseClient

__all__ = ["AnalyticsTracker", "DeepgramClient", "SupabaseClient"]
