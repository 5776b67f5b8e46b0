"""Unit tests for FileManager class."""

import pytest
from pathlib import Path
from unittest.mock import patch

from conftest import make_media_file
from mediascribe.storage.file_manager import FileManager, sanitize_filename


@pytest.mark.unit
class TestSanitizeFilename:
    """Test cases for sanitize_filename."""

    @pytest.mark.parametrize("raw, expected", [
        ("My Talk (final).mp4", "MyTalkfinal.mp4"),
        ("talk_v2-final.mp4", "talk_v2-final.mp4"),
        ("émission spéciale.webm", "missionspciale.webm"),
        ("視頻.mp4", "media.mp4"),
        ("???", "media"),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_filename(raw) == expected


@pytest.mark.unit
class TestFileManager:
    """Test cases for FileManager class."""

    def test_initialization(self, temp_data_dir):
        """Test FileManager initialization."""
        root = Path(temp_data_dir) / "media-transcriber"
        fm = FileManager(str(root))

        assert fm.temp_dir == root
        assert root.is_dir()

    def test_create_session(self, temp_data_dir):
        """Test creating session directory."""
        fm = FileManager(temp_data_dir)

        session = fm.create_session()

        # session_YYYYMMDD_HHMMSS_ffffff_xxxx
        assert session.session_id.startswith("session_")
        assert len(session.session_id) == len("session_") + 27
        assert session.working_dir == Path(temp_data_dir) / session.session_id
        assert session.working_dir.is_dir()
        assert session.chunk_dir == session.working_dir / "chunks"

    def test_sessions_are_distinct(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        ids = {fm.create_session().session_id for _ in range(20)}

        assert len(ids) == 20
        assert fm.list_sessions() == sorted(ids)

    def test_get_session_path_rejects_traversal(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        assert fm.get_session_path("session_1") == Path(temp_data_dir) / "session_1"
        for bad in ["", "..", ".", "../etc", "a/b"]:
            with pytest.raises(ValueError):
                fm.get_session_path(bad)

    def test_adopt_media(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        session = fm.create_session()
        scratch = session.working_dir / "linkedin-video-abc"
        downloaded = make_media_file(scratch / "My Post Video.mp4", 100)

        new_path = fm.adopt_media(session, downloaded)

        assert new_path == session.working_dir / "MyPostVideo.mp4"
        assert new_path.stat().st_size == 100
        assert session.media_path == new_path
        assert not scratch.exists()
        assert fm.relative_resource_path(session) == f"temp_resources/{session.session_id}/MyPostVideo.mp4"

    def test_resolve_resource_path(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        resolved = fm.resolve_media_path("temp_resources/session_1/talk.mp4")

        assert resolved == (Path(temp_data_dir) / "session_1" / "talk.mp4").resolve()

    def test_resolve_resource_path_rejects_traversal(self, temp_data_dir):
        fm = FileManager(temp_data_dir)

        with pytest.raises(ValueError):
            fm.resolve_media_path("temp_resources/../../etc/passwd")

    def test_resolve_absolute_and_relative_paths(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        absolute = str(Path(temp_data_dir) / "local.mp4")

        assert fm.resolve_media_path(absolute) == Path(absolute)
        with patch("mediascribe.storage.file_manager.Path.cwd", return_value=Path("/work")):
            assert fm.resolve_media_path("media/local.mp4") == Path("/work/media/local.mp4")

    def test_list_sessions_ignores_other_entries(self, temp_data_dir):
        fm = FileManager(temp_data_dir)
        session = fm.create_session()
        (Path(temp_data_dir) / "logs").mkdir()
        make_media_file(Path(temp_data_dir) / "session_file.txt", 1)

        assert fm.list_sessions() == [session.session_id]
