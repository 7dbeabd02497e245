"""
Transfer planning for cp

Classification is a pure function of the invocation's shape; building the
plan then fills in concrete items using listings and local path lookups.
"""
import os
from typing import Dict, List, Sequence

from ...core.exceptions import (
    AmbiguousSpec,
    BadLocalPath,
    DestinationNotDirectory,
    DuplicateDestination,
    UnsupportedCpForm,
    WholeHomeworkRequiresAll,
)
from ...core.interfaces import FileSystem, ListingSource
from ...core.logging import get_logger
from .layout import LayoutReconstructor
from .matcher import match_entries, match_required
from .models import (
    CpForm,
    LocalKind,
    LocalRef,
    Ref,
    RemoteEntry,
    RemoteRef,
    TransferDirection,
    TransferItem,
    TransferPlan,
)

logger = get_logger(__name__)


def classify(
    sources: Sequence[Ref],
    destination: Ref,
    all_files: bool = False,
    destination_kind: LocalKind = LocalKind.MISSING,
    match_count: int = 0,
) -> CpForm:
    """
    Decide which form of cp an invocation is.

    Args:
        sources: Parsed source arguments
        destination: Parsed destination argument
        all_files: Whether -a/--all was given
        destination_kind: What a local destination currently is
        match_count: Number of remote entries the sources resolve to

    Returns:
        The CpForm

    Raises:
        UnsupportedCpForm: For local→local, remote→remote, mixed directions
            and several sources into one remote file
        WholeHomeworkRequiresAll: Whole-homework source without -a
        AmbiguousSpec: One pattern resolving to several files for a file destination
        DestinationNotDirectory: Several files for a destination that is not a directory
    """
    if not sources:
        raise UnsupportedCpForm("no source files given")

    local_sources = [s for s in sources if isinstance(s, LocalRef)]
    remote_sources = [s for s in sources if isinstance(s, RemoteRef)]

    if local_sources and remote_sources:
        raise UnsupportedCpForm("cannot upload and download in one command")

    if isinstance(destination, RemoteRef):
        if remote_sources:
            raise UnsupportedCpForm(
                f"cannot copy remote to remote (‘{remote_sources[0]}’ -> ‘{destination}’); use mv"
            )
        if destination.is_whole_homework:
            return CpForm.UPLOAD_N
        if len(sources) > 1:
            raise UnsupportedCpForm(
                f"cannot copy {len(sources)} files to the single remote file ‘{destination}’"
            )
        return CpForm.UPLOAD_1

    if local_sources:
        raise UnsupportedCpForm(
            f"cannot copy local to local (‘{local_sources[0]}’ -> ‘{destination}’)"
        )

    whole = [s for s in remote_sources if s.is_whole_homework]
    if whole:
        if not all_files:
            raise WholeHomeworkRequiresAll(str(whole[0]))
        if len(whole) != len(remote_sources):
            raise UnsupportedCpForm("-a/--all cannot be combined with file patterns")
        if destination_kind == LocalKind.FILE:
            raise DestinationNotDirectory(destination.path)
        return CpForm.DOWNLOAD_ALL

    if destination_kind == LocalKind.DIRECTORY:
        return CpForm.DOWNLOAD_1 if match_count == 1 else CpForm.DOWNLOAD_N

    if match_count == 1 and not destination.ends_in_slash:
        return CpForm.DOWNLOAD_1

    if len(remote_sources) == 1 and match_count > 1:
        raise AmbiguousSpec(str(remote_sources[0]))

    if destination_kind == LocalKind.FILE and match_count > 1:
        raise UnsupportedCpForm(
            f"cannot copy {match_count} files to the single file ‘{destination}’"
        )

    raise DestinationNotDirectory(destination.path)


class TransferPlanner:
    """
    Builds a TransferPlan from parsed cp arguments.

    Listings are fetched at most once per homework for the lifetime of the
    planner, which is one invocation.
    """

    def __init__(self, listing_source: ListingSource, fs: FileSystem):
        self.listing_source = listing_source
        self.fs = fs
        self.layout = LayoutReconstructor(fs)
        self._listings: Dict[int, List[RemoteEntry]] = {}

    def listing(self, homework: int) -> List[RemoteEntry]:
        """Fetch (once) the listing of a homework"""
        if homework not in self._listings:
            logger.debug(f"Fetching listing for hw{homework}")
            self._listings[homework] = list(self.listing_source.fetch_listing(homework))
        return self._listings[homework]

    def build(
        self,
        sources: Sequence[Ref],
        destination: Ref,
        all_files: bool = False,
    ) -> TransferPlan:
        """
        Classify the invocation and produce its ordered transfer items.

        Raises:
            SpecError: Any classification, matching or layout problem
            HomeworkNotFound: If a source or upload destination homework
                does not exist
        """
        resolved: List[RemoteEntry] = []
        destination_kind = LocalKind.MISSING

        if isinstance(destination, LocalRef):
            destination_kind = self._local_kind(destination.path)
            if all(isinstance(s, RemoteRef) for s in sources):
                resolved = self._resolve_sources(sources, all_files)

        form = classify(
            sources,
            destination,
            all_files=all_files,
            destination_kind=destination_kind,
            match_count=len(resolved),
        )
        logger.debug(f"cp form: {form.value}")

        plan = TransferPlan(form=form)

        if form in (CpForm.UPLOAD_1, CpForm.UPLOAD_N):
            # an unknown homework is reported here, before anything is sent
            self.listing(destination.homework)

        if form == CpForm.UPLOAD_1:
            local = self._upload_source(sources[0])
            name = self._upload_name(destination)
            plan.items.append(self._upload(local, destination.homework, name))

        elif form == CpForm.UPLOAD_N:
            for source in sources:
                local = self._upload_source(source)
                plan.items.append(self._upload(local, destination.homework, local.basename))

        elif form == CpForm.DOWNLOAD_1:
            entry = resolved[0]
            if destination_kind == LocalKind.DIRECTORY:
                path = os.path.join(destination.path, entry.name)
            else:
                path = destination.path
            plan.items.append(self._download(entry, path))

        elif form == CpForm.DOWNLOAD_N:
            for entry in resolved:
                plan.items.append(self._download(entry, os.path.join(destination.path, entry.name)))

        else:
            placed, directories = self.layout.plan(destination.path, resolved)
            plan.directories.extend(directories)
            for entry, path in placed:
                plan.items.append(self._download(entry, path))

        check_unique_destinations(plan.items)
        return plan

    def _resolve_sources(self, sources: Sequence[RemoteRef], all_files: bool) -> List[RemoteEntry]:
        resolved = []
        for ref in sources:
            if ref.is_whole_homework:
                if not all_files:
                    # classify reports this
                    return []
                # the layout step decides which types are kept
                resolved.extend(match_entries(None, self.listing(ref.homework), include_logs=True))
            else:
                resolved.extend(match_required(ref, self.listing(ref.homework), include_logs=all_files))
        return resolved

    def _local_kind(self, path: str) -> LocalKind:
        if not self.fs.exists(path):
            return LocalKind.MISSING
        if self.fs.is_directory(path):
            return LocalKind.DIRECTORY
        return LocalKind.FILE

    def _upload_source(self, source: LocalRef) -> LocalRef:
        if not source.basename or source.basename in (".", ".."):
            raise BadLocalPath(source.path)
        kind = self._local_kind(source.path)
        if kind == LocalKind.MISSING:
            raise BadLocalPath(source.path, "no such file")
        if kind == LocalKind.DIRECTORY:
            raise UnsupportedCpForm(f"cannot upload a directory: {source.path}")
        return source

    def _upload_name(self, destination: RemoteRef) -> str:
        """Remote file name for a single upload"""
        if not destination.has_wildcards:
            return destination.pattern

        found = match_entries(destination.pattern, self.listing(destination.homework), include_logs=True)
        if len(found) == 1:
            return found[0].name
        if not found:
            raise UnsupportedCpForm(
                f"destination pattern ‘{destination}’ matches no existing file"
            )
        raise AmbiguousSpec(str(destination), [entry.name for entry in found])

    @staticmethod
    def _upload(local: LocalRef, homework: int, name: str) -> TransferItem:
        return TransferItem(
            direction=TransferDirection.UPLOAD,
            local_path=local.path,
            homework=homework,
            remote_name=name,
        )

    @staticmethod
    def _download(entry: RemoteEntry, path: str) -> TransferItem:
        return TransferItem(
            direction=TransferDirection.DOWNLOAD,
            local_path=path,
            homework=entry.homework,
            remote_name=entry.name,
        )


def check_unique_destinations(items: Sequence[TransferItem]) -> None:
    """
    Reject plans where two items write the same file.

    Raises:
        DuplicateDestination: On the first repeated destination
    """
    seen = set()
    for item in items:
        if item.direction == TransferDirection.UPLOAD:
            key = (item.homework, item.remote_name)
        else:
            key = os.path.normpath(item.local_path)
        if key in seen:
            raise DuplicateDestination(item.destination)
        seen.add(key)
