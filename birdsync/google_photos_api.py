import requests
from pathlib import Path
from typing import List, Sequence

from loguru import logger

from birdsync.errors import PhotoServiceError

API_URL = "https://photoslibrary.googleapis.com/v1"

# batchAddMediaItems / batchRemoveMediaItems accept at most this many ids
BATCH_SIZE = 50
MAX_DESCRIPTION = 1000


def get_headers(creds):
    """
    Return headers for authorized requests to Google Photos.
    """
    if not creds.valid:
        from google.auth.transport.requests import Request
        creds.refresh(Request())
    return {
        "Authorization": f"Bearer {creds.token}",
        "Content-Type": "application/json"
    }


def _check(resp, action: str):
    if resp.status_code != 200:
        raise PhotoServiceError(f"{action} failed: {resp.status_code} {resp.text}")
    return resp


def _chunks(items: Sequence[str], size: int = BATCH_SIZE):
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def list_albums(creds) -> List[dict]:
    """
    List all albums (paginated). Returns a list of album dicts.
    """
    url = f"{API_URL}/albums"
    headers = get_headers(creds)
    albums = []
    page_token = None

    while True:
        params = {"pageSize": 50}
        if page_token:
            params["pageToken"] = page_token

        resp = _check(requests.get(url, headers=headers, params=params), "Listing albums")
        data = resp.json()
        albums.extend(data.get("albums", []))

        page_token = data.get("nextPageToken")
        if not page_token:
            break

    return albums


def search_album_items(creds, album_id: str) -> List[dict]:
    """
    Return every media item in an album, in the album's current order.
    """
    url = f"{API_URL}/mediaItems:search"
    body = {"albumId": album_id, "pageSize": 100}
    items = []

    while True:
        resp = _check(
            requests.post(url, headers=get_headers(creds), json=body),
            f"Searching album {album_id}",
        )
        data = resp.json()
        items.extend(data.get("mediaItems", []))

        next_page_token = data.get("nextPageToken")
        if not next_page_token:
            break
        body["pageToken"] = next_page_token

    return items


def upload_bytes(creds, file_path: Path) -> str:
    """
    Upload the raw bytes of a local file. Returns the upload token.
    """
    upload_url = f"{API_URL}/uploads"
    headers = {
        "Authorization": f"Bearer {creds.token}",
        "Content-type": "application/octet-stream",
        "X-Goog-Upload-File-Name": file_path.name,
        "X-Goog-Upload-Protocol": "raw"
    }

    with open(file_path, "rb") as f:
        resp = requests.post(upload_url, headers=headers, data=f.read())
    if resp.status_code != 200 or not resp.text:
        raise PhotoServiceError(f"Upload failed: {resp.status_code} {resp.text}")
    return resp.text


def create_media_item(creds, upload_token: str, file_name: str, description: str) -> str:
    """
    Turn an upload token into a media item. Returns the new mediaItem ID.
    """
    create_url = f"{API_URL}/mediaItems:batchCreate"
    create_body = {
        "newMediaItems": [
            {
                "description": description[:MAX_DESCRIPTION],
                "simpleMediaItem": {
                    "uploadToken": upload_token,
                    "fileName": file_name
                }
            }
        ]
    }
    resp = _check(
        requests.post(create_url, headers=get_headers(creds), json=create_body),
        "batchCreate",
    )

    new_items = resp.json().get("newMediaItemResults", [])
    if not new_items:
        raise PhotoServiceError("No media items created.")

    new_item = new_items[0]
    status_code = new_item.get("status", {}).get("code", -1)
    message = new_item.get("status", {}).get("message", "Unknown")

    if status_code != 0 or "mediaItem" not in new_item:
        raise PhotoServiceError(f"Upload error: {message}")
    return new_item["mediaItem"]["id"]


def create_album(creds, title: str) -> str:
    url = f"{API_URL}/albums"
    resp = _check(
        requests.post(url, headers=get_headers(creds), json={"album": {"title": title}}),
        f"Creating album {title!r}",
    )
    album_id = resp.json().get("id")
    if not album_id:
        raise PhotoServiceError(f"Creating album {title!r} returned no id")
    return album_id


def add_text_enrichment(creds, album_id: str, text: str):
    """
    Put a text block at the top of an album.
    """
    url = f"{API_URL}/albums/{album_id}:addEnrichment"
    body = {
        "newEnrichmentItem": {"textEnrichment": {"text": text}},
        "albumPosition": {"position": "FIRST_IN_ALBUM"}
    }
    _check(
        requests.post(url, headers=get_headers(creds), json=body),
        f"Adding description to album {album_id}",
    )


def add_media_items_to_album(creds, album_id: str, media_ids: Sequence[str]):
    """
    batchAddMediaItems to append media_ids to album_id, in order.
    """
    url = f"{API_URL}/albums/{album_id}:batchAddMediaItems"
    headers = get_headers(creds)
    for chunk in _chunks(media_ids):
        _check(
            requests.post(url, headers=headers, json={"mediaItemIds": chunk}),
            f"Adding {len(chunk)} items to album {album_id}",
        )


def remove_media_items_from_album(creds, album_id: str, media_ids: Sequence[str]):
    url = f"{API_URL}/albums/{album_id}:batchRemoveMediaItems"
    headers = get_headers(creds)
    for chunk in _chunks(media_ids):
        _check(
            requests.post(url, headers=headers, json={"mediaItemIds": chunk}),
            f"Removing {len(chunk)} items from album {album_id}",
        )


def capture_order(item: dict):
    """
    Sort key putting media items in the order they were taken.
    """
    created = item.get("mediaMetadata", {}).get("creationTime", "")
    return (created, item.get("filename", ""), item["id"])


class GooglePhotosService:
    """
    The remote photo service backed by the Google Photos Library API.

    The API has no tags, album descriptions or cover photos, so tags are
    written into each photo's description, the album description becomes
    a text enrichment, and the cover photo is the album's first item.
    """

    def __init__(self, creds):
        self.creds = creds

    def list_albums(self) -> List[dict]:
        return list_albums(self.creds)

    def upload_photo(self, path: Path, title: str, description: str, tags: Sequence[str]) -> str:
        path = Path(path)
        text = f"{title}\n{description}Tags: {', '.join(tags)}\n"
        token = upload_bytes(self.creds, path)
        media_id = create_media_item(self.creds, token, path.name, text)
        logger.info(f"Uploaded {path} as {media_id}")
        return media_id

    def create_album(self, title: str, description: str, cover_photo_id: str) -> str:
        album_id = create_album(self.creds, title)
        add_media_items_to_album(self.creds, album_id, [cover_photo_id])
        add_text_enrichment(self.creds, album_id, description.strip())
        return album_id

    def add_photo_to_album(self, album_id: str, photo_id: str):
        add_media_items_to_album(self.creds, album_id, [photo_id])
        logger.info(f"Added media {photo_id} to album {album_id}")

    def reorder_album(self, album_id: str):
        """
        Put the album's photos in capture order by removing them all and
        adding them back sorted. Only works on albums this app created.
        """
        items = search_album_items(self.creds, album_id)
        ordered = [item["id"] for item in sorted(items, key=capture_order)]
        if ordered == [item["id"] for item in items]:
            logger.debug(f"Album {album_id} already in order")
            return
        remove_media_items_from_album(self.creds, album_id, ordered)
        add_media_items_to_album(self.creds, album_id, ordered)
        logger.info(f"Reordered {len(ordered)} items in album {album_id}")
