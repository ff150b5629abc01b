from .supabase_service import SupabaseService

__all__ = ["SupabaseService"]
