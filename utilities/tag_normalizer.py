"""
Tag Normalizer - Rewrite tags and filenames of organized tracks

For a track at <Folder>/<Name>.<ext>:
    artist = Folder
    album  = Folder
    title  = part of <Name> after the first " - " (or all of it)

All existing tags are removed before the three fields are written, so stale
metadata from an earlier classification cannot survive. The file is then
renamed to "<artist> - <title>.<ext>". Running it again on a normalized file
changes nothing.

MP3 goes through EasyID3. WAV and AIFF carry ID3 frames and get TPE1/TALB/TIT2
written directly; FLAC, Ogg and MP4 use mutagen's easy keys. Other files are
skipped.

Usage:
    from utilities.tag_normalizer import TagNormalizer

    TagNormalizer().normalize_library('/music', inbox='/music/Inbox')
"""

from pathlib import Path
from typing import Any, Dict, Optional

import mutagen
from mutagen.aiff import AIFF
from mutagen.easyid3 import EasyID3
from mutagen.easymp4 import EasyMP4
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError, TALB, TIT2, TPE1
from mutagen.id3 import delete as delete_id3
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from agents.mover import replace_file
from agents.scanner import AUDIO_EXTENSIONS

TITLE_SEPARATOR = " - "
TAG_FIELDS = ('artist', 'album', 'title')

# Containers that carry an ID3 tag (no easy interface in mutagen)
ID3_CONTAINERS = (WAVE, AIFF)
# Containers whose easy tags take artist/album/title keys
EASY_CONTAINERS = (FLAC, OggVorbis, OggOpus, EasyMP4)

ID3_FRAMES = {'artist': TPE1, 'album': TALB, 'title': TIT2}
FRAME_FIELDS = {frame.__name__: key for key, frame in ID3_FRAMES.items()}


class TagNormalizer:
    """Normalize tags and filenames of tracks already placed in a folder."""

    name = "Tagger"

    def __init__(self, dry_run: bool = False, skip_hidden: bool = True):
        self.dry_run = dry_run
        self.skip_hidden = skip_hidden

    def derive(self, path: Path) -> Dict[str, str]:
        """Tag values implied by the file's folder and name."""
        path = Path(path)
        folder = path.parent.name
        head, sep, tail = path.stem.partition(TITLE_SEPARATOR)
        title = tail.strip() if sep and tail.strip() else path.stem.strip()
        return {'artist': folder, 'album': folder, 'title': title}

    def normalize_file(self, path: str | Path) -> Dict[str, Any]:
        """
        Normalize one file.

        Args:
            path: Track inside its destination folder

        Returns:
            Dict with status ('normalized', 'unchanged', 'skipped', 'error'),
            the final path and an error message when relevant
        """
        path = Path(path)
        wanted = self.derive(path)
        new_path = path.with_name(f"{wanted['artist']}{TITLE_SEPARATOR}{wanted['title']}{path.suffix}")
        result = {'path': str(path), 'new_path': str(new_path), 'status': 'unchanged', 'error': None}

        try:
            current = self.read_tags(path)
            if current is None:
                result['status'] = 'skipped'
                result['error'] = 'unsupported file type'
                return result

            tags_ok = current == {k: [v] for k, v in wanted.items()}
            name_ok = path.name == new_path.name

            if tags_ok and name_ok:
                return result

            if self.dry_run:
                self.log(f"[DRY RUN] Would normalize {path.name} -> {new_path.name}")
                result['status'] = 'normalized'
                return result

            if not tags_ok:
                self.write_tags(path, wanted)
            if not name_ok:
                replace_file(path, new_path)
                self.log(f"  Renamed: {path.name} -> {new_path.name}")

            result['status'] = 'normalized'
            return result

        except Exception as e:
            result['status'] = 'error'
            result['error'] = str(e)
            self.log(f"  ERROR: {path.name}: {e}")
            return result

    def normalize_folder(self, folder: str | Path) -> Dict[str, Any]:
        """Normalize every audio file directly inside folder."""
        results = {'normalized': 0, 'unchanged': 0, 'skipped': 0, 'errors': [], 'changes': []}

        for audio_file in sorted(Path(folder).iterdir()):
            if not audio_file.is_file() or audio_file.suffix.lower() not in AUDIO_EXTENSIONS:
                continue
            if self.skip_hidden and audio_file.name.startswith('.'):
                continue

            outcome = self.normalize_file(audio_file)
            status = outcome['status']
            if status == 'error':
                results['errors'].append(f"{audio_file.name}: {outcome['error']}")
            else:
                results[status] += 1
            if status == 'normalized':
                results['changes'].append({'old': audio_file.name, 'new': Path(outcome['new_path']).name})

        return results

    def normalize_library(self, root: str | Path, inbox: Optional[str | Path] = None) -> Dict[str, Any]:
        """
        Normalize every destination folder under root.

        The inbox (when it is a subfolder of root) is left alone.
        """
        root = Path(root)
        inbox_path = Path(inbox).resolve() if inbox else None
        summary = {'folders': 0, 'normalized': 0, 'unchanged': 0, 'skipped': 0, 'errors': []}

        for folder in sorted(p for p in root.iterdir() if p.is_dir()):
            if self.skip_hidden and folder.name.startswith('.'):
                continue
            if inbox_path and folder.resolve() == inbox_path:
                continue

            folder_results = self.normalize_folder(folder)
            summary['folders'] += 1
            for key in ('normalized', 'unchanged', 'skipped'):
                summary[key] += folder_results[key]
            summary['errors'].extend(folder_results['errors'])

        return summary

    def read_tags(self, path: Path) -> Optional[Dict[str, list]]:
        """
        Current tags as {field: [values]}, or None for unsupported files.

        ID3 frames outside artist/album/title show up under their frame id,
        so leftover frames make the file count as not normalized.
        """
        if path.suffix.lower() == '.mp3':
            try:
                return self._id3_values(ID3(str(path)))
            except ID3NoHeaderError:
                return {}

        audio = self._open(path)
        if audio is None:
            return None
        if audio.tags is None:
            return {}
        if isinstance(audio, ID3_CONTAINERS):
            return self._id3_values(audio.tags)
        return {key: list(audio.tags[key]) for key in audio.tags.keys()}

    def write_tags(self, path: Path, values: Dict[str, str]) -> None:
        """Drop all existing tags and write only the given fields."""
        if path.suffix.lower() == '.mp3':
            delete_id3(str(path))
            tags = EasyID3()
            for key in TAG_FIELDS:
                tags[key] = values[key]
            tags.save(str(path))
            return

        audio = self._open(path)
        if audio is None:
            raise mutagen.MutagenError(f"Unsupported file type: {path.name}")

        audio.delete()
        audio = self._open(path)
        if audio.tags is None:
            audio.add_tags()

        if isinstance(audio, ID3_CONTAINERS):
            for key in TAG_FIELDS:
                audio.tags.add(ID3_FRAMES[key](encoding=3, text=[values[key]]))
        else:
            for key in list(audio.tags.keys()):
                del audio.tags[key]
            for key in TAG_FIELDS:
                audio.tags[key] = values[key]
        audio.save()

    def _open(self, path: Path):
        """Load a non-MP3 file whose tags can be rewritten here, else None"""
        audio = mutagen.File(str(path), easy=True)
        if isinstance(audio, ID3_CONTAINERS + EASY_CONTAINERS):
            return audio
        return None

    @staticmethod
    def _id3_values(frames) -> Dict[str, list]:
        values = {}
        for frame_id in frames.keys():
            field = FRAME_FIELDS.get(frame_id)
            if field:
                values[field] = [str(text) for text in frames[frame_id].text]
            else:
                values[frame_id] = [str(frames[frame_id])]
        return values

    def log(self, message: str) -> None:
        print(f"[{self.name}] {message}")
