"""Auth provider adapters."""

from src.providers.auth.supabase_auth_provider import SupabaseAuthProvider

__all__ = ["SupabaseAuthProvider"]
