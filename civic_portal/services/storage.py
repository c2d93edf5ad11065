#civic_portal/services/storage.py
import base64, requests, uuid
from civic_portal.core.config import settings

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024

def upload_image(data: bytes, content_type: str, path: str) -> str:
    """Uploads to Supabase Storage via REST; returns public URL (bucket must be public).

    Without Supabase credentials the image is inlined as a data URL so local
    setups still round-trip photos.
    """
    if not (settings.supabase_url and settings.supabase_service_role):
        b64 = base64.b64encode(data).decode("utf-8")
        return f"data:{content_type};base64,{b64}"
    url = f"{settings.supabase_url}/storage/v1/object/{settings.supabase_bucket}/{path}"
    r = requests.post(url, headers={
        "Authorization": f"Bearer {settings.supabase_service_role}",
        "Content-Type": content_type,
        "x-upsert": "true",
    }, data=data, timeout=30)
    r.raise_for_status()
    return f"{settings.supabase_url}/storage/v1/object/public/{settings.supabase_bucket}/{path}"

def make_object_key(prefix: str, filename: str) -> str:
    ext = (filename.rsplit(".", 1)[-1] if "." in filename else "jpg").lower()
    return f"{prefix}/{uuid.uuid4().hex}.{ext}"
