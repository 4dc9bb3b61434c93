from app.genres import genre_options, project_genres, resolve_genre_id
from app.models import MediaItem, StreamSource
from app.projection import (
    project_detail_meta,
    project_episode_videos,
    project_meta,
    project_streams,
    quality_rank,
    sort_by_quality,
)


def test_project_genres_drops_unknown_ids_and_keeps_order():
    assert project_genres([28, 99999, 35]) == ["Action", "Comedy"]
    assert project_genres(["18", None, "x"]) == ["Drama"]


def test_genre_lookup_helpers():
    assert resolve_genre_id("Science Fiction") == 878
    assert resolve_genre_id("sci-fi & fantasy") == 10765
    assert resolve_genre_id("28") == 28
    assert resolve_genre_id("Polka") is None
    assert resolve_genre_id("  ") is None
    assert "Kids" in genre_options("tv")
    assert "Kids" not in genre_options("movie")


def test_sort_by_quality_is_stable_and_idempotent():
    sources = [
        StreamSource(url="https://a", quality="Auto"),
        StreamSource(url="https://b", quality="1080p"),
        StreamSource(url="https://c", quality="720p"),
    ]
    ordered = sort_by_quality(sources)
    assert [source.quality for source in ordered] == ["1080p", "720p", "Auto"]
    assert sort_by_quality(ordered) == ordered

    ties = [
        StreamSource(url="https://first", quality="720p"),
        StreamSource(url="https://second", quality="720p"),
    ]
    assert [source.url for source in sort_by_quality(ties)] == [
        "https://first",
        "https://second",
    ]


def test_quality_rank_defaults():
    assert quality_rank(None) == 1
    assert quality_rank("Auto") == 1
    assert quality_rank("4K") == 0


def test_project_streams_filters_and_orders_sources():
    streams = project_streams(
        [
            {"url": "https://cdn/auto.m3u8"},
            {"quality": "1080p"},
            {"url": "https://cdn/1080.mp4", "quality": "1080p", "type": "mp4"},
            {"url": "https://cdn/480.m3u8", "quality": "480p", "type": "hls"},
        ],
        addon_name="Cineby",
    )

    assert [stream["title"] for stream in streams] == [
        "1080p - Server 2",
        "480p - Server 3",
        "Auto - Server 1",
    ]
    assert streams[0]["behaviorHints"] == {"notWebReady": False}
    assert streams[1]["behaviorHints"] == {"notWebReady": True}
    assert streams[0]["name"] == "Cineby"


def test_project_episode_videos_synthesises_ids_and_titles():
    videos = project_episode_videos(
        "cineby:42",
        [
            {
                "season_number": 2,
                "episodes": [
                    {
                        "episode_number": 5,
                        "name": "Homecoming",
                        "overview": "They return.",
                        "still_path": "/still.jpg",
                        "air_date": "2022-03-04",
                    },
                    {"episode_number": 6},
                    {"name": "No number"},
                ],
            },
            {"episodes": [{"episode_number": 1, "name": "Orphan season"}]},
        ],
    )

    assert videos == [
        {
            "id": "cineby:42:2:5",
            "title": "S02E05 - Homecoming",
            "season": 2,
            "episode": 5,
            "overview": "They return.",
            "thumbnail": "https://image.tmdb.org/t/p/w300/still.jpg",
            "released": "2022-03-04",
        }
    ]


def test_project_meta_maps_listing_item():
    item = MediaItem.from_trending(
        {
            "id": 550,
            "title": "Fight Club",
            "poster": "https://img/poster.jpg",
            "image": "https://img/backdrop.jpg",
            "description": "An insomniac office worker...",
            "release_date": "1999-10-15",
            "mediaType": "movie",
            "genre_ids": [18, 53, 4242],
            "rating": 8.4,
            "original_language": "en",
        }
    )

    assert project_meta(item) == {
        "id": "cineby:550",
        "type": "movie",
        "name": "Fight Club",
        "poster": "https://img/poster.jpg",
        "background": "https://img/backdrop.jpg",
        "description": "An insomniac office worker...",
        "releaseInfo": "1999-10-15",
        "genres": ["Drama", "Thriller"],
        "imdbRating": "8.4",
        "language": "en",
    }


def test_project_meta_without_rating_omits_field():
    item = MediaItem(id="1", media_kind="tv", title="Quiet Show")
    meta = project_meta(item)
    assert meta is not None
    assert meta["type"] == "series"
    assert meta["poster"] == ""
    assert "imdbRating" not in meta
    assert "language" not in meta


def test_project_meta_rejects_missing_item():
    assert project_meta(None) is None
    assert project_meta(MediaItem(id="")) is None


def test_project_detail_meta_adds_runtime_and_videos():
    item = MediaItem.from_detail(
        {
            "id": 42,
            "name": "Severance",
            "episode_run_time": [55],
            "seasons": [
                {"season_number": 1, "episodes": [{"episode_number": 1, "name": "Good News"}]}
            ],
        },
        media_kind="tv",
    )
    assert item is not None

    meta = project_detail_meta(item, "cineby:42")

    assert meta["id"] == "cineby:42"
    assert meta["runtime"] == "55 min"
    assert [video["id"] for video in meta["videos"]] == ["cineby:42:1:1"]
