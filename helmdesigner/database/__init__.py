from helmdesigner.database.supabase_client import SupabaseClient, get_supabase, get_service_supabase

__all__ = ["SupabaseClient", "get_supabase", "get_service_supabase"]
