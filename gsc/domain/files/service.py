"""
Remote file service: ls, cat, rm and mv on submitted files
"""
from typing import Callable, Iterator, List, Optional, Tuple

from ...core.exceptions import AmbiguousSpec, NoMatch, UnsupportedCpForm, WholeHomeworkRequiresAll
from ...core.interfaces import FileSystem, ListingSource, PromptProvider, RemoteFileOperations
from ...core.logging import get_logger
from ..transfer.conflict import ConflictResolver
from ..transfer.matcher import match_entries, match_required
from ..transfer.models import OverwritePolicy, RemoteEntry, RemoteRef
from ..transfer.parser import parse_destination

logger = get_logger(__name__)


class RemoteFileService:
    """
    Operations on files already on the server.

    Each method handles one spec; callers looping over several specs decide
    whether an error for one stops the rest.
    """

    def __init__(
        self,
        listing_source: ListingSource,
        operations: RemoteFileOperations,
        fs: FileSystem,
        prompt_provider: Optional[PromptProvider] = None,
        on_delete: Optional[Callable[[RemoteEntry], None]] = None,
        on_move: Optional[Callable[[RemoteEntry, RemoteRef], None]] = None,
    ):
        self.listing_source = listing_source
        self.operations = operations
        self.fs = fs
        self.prompt_provider = prompt_provider
        self.on_delete = on_delete
        self.on_move = on_move

    def ls(self, ref: RemoteRef) -> List[RemoteEntry]:
        """
        List matching files, logs included.

        Raises:
            NoMatch: If nothing matches, including an empty homework
        """
        entries = match_entries(ref.pattern, self.listing_source.fetch_listing(ref.homework), include_logs=True)
        if not entries:
            raise NoMatch(str(ref))
        return entries

    def cat(self, ref: RemoteRef, all_files: bool = False) -> Iterator[Tuple[RemoteEntry, bytes]]:
        """
        Yield (entry, contents) for each matching file.

        Whole-homework and wildcard specs leave out logs unless all_files.
        """
        entries = match_required(ref, self.listing_source.fetch_listing(ref.homework), include_logs=all_files)
        for entry in entries:
            yield entry, self.operations.read(entry.homework, entry.name)

    def rm(self, ref: RemoteRef, all_files: bool = False) -> List[RemoteEntry]:
        """
        Delete matching files.

        Raises:
            WholeHomeworkRequiresAll: Whole homework without all_files
            NoMatch: If a pattern matches nothing
        """
        if ref.is_whole_homework and not all_files:
            raise WholeHomeworkRequiresAll(str(ref))

        entries = match_required(ref, self.listing_source.fetch_listing(ref.homework), include_logs=all_files)

        for entry in entries:
            if self.on_delete:
                self.on_delete(entry)
            self.operations.delete(entry.homework, entry.name)
        return entries

    def mv(
        self,
        src: RemoteRef,
        dst_token: str,
        policy: OverwritePolicy = OverwritePolicy.PROMPT_DEFAULT,
    ) -> Optional[RemoteRef]:
        """
        Rename or move one remote file.

        Args:
            src: Must match exactly one file
            dst_token: hw<N>:<name>, hw<N> (same name) or :<name> (same homework)
            policy: What to do if the destination name is taken

        Returns:
            The new location, or None if nothing was done
        """
        if src.is_whole_homework:
            raise UnsupportedCpForm(f"mv needs a single file, not ‘{src}’")

        found = match_required(src, self.listing_source.fetch_listing(src.homework), include_logs=True)
        if len(found) > 1:
            raise AmbiguousSpec(str(src), [entry.name for entry in found])
        entry = found[0]

        dst = parse_destination(dst_token, entry.homework)
        if dst.has_wildcards:
            raise UnsupportedCpForm(f"mv destination may not contain wildcards: ‘{dst_token}’")
        target = RemoteRef(dst.homework, dst.pattern or entry.name)

        if target == entry.ref:
            logger.info("Source and destination are identical.")
            return None

        taken = any(e.name == target.pattern for e in self.listing_source.fetch_listing(target.homework))
        resolver = ConflictResolver(policy, self.fs, self.prompt_provider)
        if not resolver.should_overwrite(str(target), taken):
            return None

        if self.on_move:
            self.on_move(entry, target)
        self.operations.rename(entry.homework, entry.name, target.homework, target.pattern)
        return target
