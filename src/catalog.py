"""Subject search and note grouping for the Subjects and Topic pages."""
from typing import List, Sequence, Tuple

from src.models import Note, Subject


def filter_subjects(subjects: Sequence[Subject], term: str) -> List[Subject]:
    """Case-insensitive match on name or description. Blank term returns everything."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(subjects)
    return [
        s for s in subjects
        if needle in s.name.lower() or needle in (s.description or "").lower()
    ]


def split_notes(notes: Sequence[Note]) -> Tuple[List[Note], List[Note]]:
    """(mind maps with an image url, text notes) in original order."""
    mind_maps = [n for n in notes if n.is_mind_map and n.mind_map_url]
    text_notes = [n for n in notes if not (n.is_mind_map and n.mind_map_url)]
    return mind_maps, text_notes
