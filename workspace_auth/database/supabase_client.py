from supabase import create_client, Client
from workspace_auth.config.settings import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Client used for every store round-trip. Prefers the service_role key so the
        authorization tables and rpc functions are reachable regardless of RLS."""
        if cls._client is None:
            key = settings.supabase_service_role_key or settings.supabase_key
            cls._client = create_client(settings.supabase_url, key)
        return cls._client


def get_supabase() -> Client:
    return SupabaseClient.get_client()
