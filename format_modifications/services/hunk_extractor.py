"""
Hunk Extractor - Turn a baseline and a buffer into line-level change hunks
"""

from __future__ import annotations

from difflib import SequenceMatcher, unified_diff

from patiencediff import PatienceSequenceMatcher

from format_modifications.models.diff import DiffOptions, DiffResult, Hunk

# (old_start, old_end, new_start, new_end), 0-indexed and half-open
Block = list[int]


def split_text(text: str) -> list[str]:
    """Split text joined with "\\n" back into lines; the empty text has no lines"""
    if not text:
        return []
    return text.split("\n")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _is_blank(line: str | None) -> bool:
    return line is None or not line.strip()


class HunkExtractor:
    """Extract change hunks from two whole texts"""

    def extract(
        self,
        comparison_text: str,
        buffer_text: str,
        options: DiffOptions | None = None,
    ) -> list[Hunk]:
        """Hunks turning ``comparison_text`` into ``buffer_text``, ordered by new_start"""
        return self.extract_lines(split_text(comparison_text), split_text(buffer_text), options)

    def extract_lines(
        self,
        original: list[str],
        modified: list[str],
        options: DiffOptions | None = None,
    ) -> list[Hunk]:
        options = options or DiffOptions()
        original_keys = self._keys(original, options)
        modified_keys = self._keys(modified, options)

        blocks = self._change_blocks(original_keys, modified_keys, options)
        if options.indent_heuristic:
            blocks = self._slide_blocks(blocks, original_keys, modified_keys)

        return self._build_hunks(blocks, len(original), len(modified), options)

    def generate_diff(
        self,
        original_lines: list[str],
        new_lines: list[str],
        file_path: str,
        options: DiffOptions | None = None,
    ) -> DiffResult:
        """Structured diff plus unified diff text between two line lists"""
        unified = list(
            unified_diff(
                original_lines,
                new_lines,
                fromfile=f"a/{file_path}",
                tofile=f"b/{file_path}",
                lineterm="",
            )
        )
        return DiffResult(
            file_path=file_path,
            hunks=self.extract_lines(original_lines, new_lines, options),
            unified_diff="\n".join(unified) + "\n" if unified else "",
        )

    def _keys(self, lines: list[str], options: DiffOptions) -> list[str]:
        if not options.ignore_cr_at_eol:
            return lines
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def _change_blocks(
        self,
        original: list[str],
        modified: list[str],
        options: DiffOptions,
    ) -> list[Block]:
        if options.algorithm == "patience":
            matcher = PatienceSequenceMatcher(None, original, modified)
        else:
            matcher = SequenceMatcher(None, original, modified, autojunk=False)

        blocks: list[Block] = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            if blocks and blocks[-1][1] == i1 and blocks[-1][3] == j1:
                blocks[-1][1], blocks[-1][3] = i2, j2
            else:
                blocks.append([i1, i2, j1, j2])
        return blocks

    def _slide_blocks(
        self,
        blocks: list[Block],
        original: list[str],
        modified: list[str],
    ) -> list[Block]:
        """Move pure insertions and deletions to the most readable position.

        A block of inserted (or deleted) lines can shift through the unchanged
        lines around it whenever the line entering the block equals the line
        leaving it. Among the equivalent positions, prefer one followed by a
        blank line or the end of the text, then the one whose first non-blank
        line is least indented, then the one furthest down.
        """
        for index, block in enumerate(blocks):
            i1, i2, j1, j2 = block
            if i1 != i2 and j1 != j2:
                continue  # modifications are anchored on both sides

            if i1 == i2:
                lines, start, end = modified, j1, j2
            else:
                lines, start, end = original, i1, i2
            if index > 0:
                low = blocks[index - 1][3] if i1 == i2 else blocks[index - 1][1]
            else:
                low = 0
            if index + 1 < len(blocks):
                high = blocks[index + 1][2] if i1 == i2 else blocks[index + 1][0]
            else:
                high = len(lines)

            while start > low and lines[start - 1] == lines[end - 1]:
                start, end = start - 1, end - 1

            best_shift, best_score = 0, None
            shift = 0
            while True:
                s, e = start + shift, end + shift
                following = lines[e] if e < len(lines) else None
                first = next((line for line in lines[s:e] if line.strip()), "")
                score = (0 if _is_blank(following) else 1, _indent(first), -shift)
                if best_score is None or score < best_score:
                    best_shift, best_score = shift, score
                if e < high and lines[s] == lines[e]:
                    shift += 1
                else:
                    break

            # both sides move together through the unchanged region
            delta = (start + best_shift) - (j1 if i1 == i2 else i1)
            block[:] = [i1 + delta, i2 + delta, j1 + delta, j2 + delta]

        return blocks

    def _build_hunks(
        self,
        blocks: list[Block],
        original_len: int,
        modified_len: int,
        options: DiffOptions,
    ) -> list[Hunk]:
        max_gap = 2 * options.ctxlen + options.interhunkctxlen

        merged: list[Block] = []
        for block in blocks:
            if merged and block[0] - merged[-1][1] <= max_gap:
                merged[-1][1], merged[-1][3] = block[1], block[3]
            else:
                merged.append(list(block))

        hunks = []
        for i1, i2, j1, j2 in merged:
            i1, j1 = max(0, i1 - options.ctxlen), max(0, j1 - options.ctxlen)
            i2 = min(original_len, i2 + options.ctxlen)
            j2 = min(modified_len, j2 + options.ctxlen)
            hunks.append(
                Hunk(
                    old_start=i1 + 1,  # 1-indexed for the editor
                    old_count=i2 - i1,
                    new_start=j1 + 1,
                    new_count=j2 - j1,
                )
            )
        return hunks
