"""Handle file based transactions allowing safe restarts at any point.

Output files are written to temporary names in the same directory as the
final file and renamed into place when processing finishes without error.
Readers never see a partially written output and a half-finished run leaves
nothing that looks like a finished file, so restarts are safe.
"""
import contextlib
import os
import uuid

from ldpolya import utils


TX_PREFIX = ".ldtx"


@contextlib.contextmanager
def file_transaction(*files):
    """Wrap file generation in a transaction, moving to output if finishes.

    Yields a single temporary name, or a tuple of names when given multiple
    files. All temporary names of one transaction share a token, so tools
    writing several outputs from a common prefix keep working on them.
    Validation should happen inside the block: raising there discards the
    temporary files and leaves the final names untouched.
    """
    safe_names, orig_names = _flatten_plus_safe(files)
    # remove any half-finished transactions
    for safe in safe_names:
        utils.remove_safe(safe)
    try:
        if len(safe_names) == 1:
            yield safe_names[0]
        else:
            yield tuple(safe_names)
        for safe, orig in zip(safe_names, orig_names):
            if os.path.exists(safe):
                _move_file_with_sizecheck(safe, orig)
    finally:
        for safe in safe_names:
            utils.remove_safe(safe)


def tx_name(orig, token):
    """Temporary name for orig, kept in the same directory for an atomic rename.
    """
    dirname, basename = os.path.split(orig)
    return os.path.join(dirname, "%s-%s-%s" % (TX_PREFIX, token, basename))


def _move_file_with_sizecheck(tx_file, final_file):
    """Rename transaction file to final location, with size checks avoiding failed transfers.
    """
    want_size = utils.get_size(tx_file)
    os.replace(tx_file, final_file)
    transfer_size = utils.get_size(final_file)

    assert want_size == transfer_size, (
        'distributed.transaction.file_transaction: File rename error: '
        'temporary file ({}) size {} bytes does not equal size of file '
        'after rename ({}) size {} bytes'.format(
            tx_file, want_size, final_file, transfer_size)
    )


def _flatten_plus_safe(files):
    """Flatten names of files and create temporary file names.
    """
    rollback_files = [f for f in utils.flatten(files) if f]
    token = uuid.uuid4().hex[:8]
    for f in rollback_files:
        utils.safe_makedir(os.path.dirname(f))
    tx_files = [tx_name(f, token) for f in rollback_files]
    return tx_files, rollback_files
