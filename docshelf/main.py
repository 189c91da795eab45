import argparse
import logging
import sys
from pathlib import Path

from . import config
from .core import ANY_FOLDER, DocShelfApp, reset_storage
from .exceptions import DocShelfError, InvalidArgumentError
from .naming import format_size, sanitize_filename
from .reporting import ConsistencyChecker

def setup_logging(home: Path, verbose: bool):
    """Sets up logging to both console and a file in the store's home directory."""
    log_level = logging.DEBUG if verbose else logging.INFO

    home.mkdir(parents=True, exist_ok=True)
    log_file = home / config.LOG_FILENAME

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="docshelf: store and manage Markdown and PDF documents")

    p.add_argument("--home", type=Path, default=config.DEFAULT_HOME, help="Store root (default: ~/.docshelf)")
    p.add_argument("--db", type=Path, default=None, help="Custom path for SQLite catalog (default: home/files.db)")
    p.add_argument("--content-dir", type=Path, default=None, help="Custom blob directory (default: home/uploads)")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List files, newest first")
    ls.add_argument("--type", choices=sorted(config.SUPPORTED_TYPES), default=None, help="Only this file type")
    where = ls.add_mutually_exclusive_group()
    where.add_argument("--folder", default=None, help="Only files in this folder")
    where.add_argument("--root", action="store_true", help="Only files outside any folder")
    ls.add_argument("--sort", choices=["date", "name", "size"], default="date")
    ls.add_argument("--order", choices=["asc", "desc"], default="desc")
    ls.add_argument("--search", default=None, help="Substring match on file names")

    show = sub.add_parser("show", help="Show a file's details and Markdown content")
    show.add_argument("file_id")

    up = sub.add_parser("upload", help="Upload .md / .pdf files")
    up.add_argument("paths", type=Path, nargs="+")
    up.add_argument("--folder", default=None, help="Folder id to upload into")
    up.add_argument("--name", default=None, help="Filename to store under (single upload only)")

    dl = sub.add_parser("download", help="Write a file's bytes to disk")
    dl.add_argument("file_id")
    dl.add_argument("-o", "--output", type=Path, default=None, help="Destination file or directory (default: cwd)")

    rm = sub.add_parser("delete", help="Delete a file")
    rm.add_argument("file_id")

    clear = sub.add_parser("clear", help="Delete every file")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    ren = sub.add_parser("rename", help="Change a file's display name")
    ren.add_argument("file_id")
    ren.add_argument("name")

    mv = sub.add_parser("move", help="Move a file into a folder (or back to root)")
    mv.add_argument("file_id")
    mv.add_argument("--folder", default=None, help="Target folder id (omit for root)")

    sub.add_parser("folders", help="List folders")

    mk = sub.add_parser("mkdir", help="Create a folder")
    mk.add_argument("name")

    rf = sub.add_parser("rename-folder", help="Rename a folder")
    rf.add_argument("folder_id")
    rf.add_argument("name")

    rd = sub.add_parser("rmdir", help="Delete a folder and every file in it")
    rd.add_argument("folder_id")

    sub.add_parser("stats", help="Show file counts and total size")

    chk = sub.add_parser("check", help="Find orphan blobs and dangling records")
    chk.add_argument("--csv", type=Path, default=None, help="Write findings to this CSV")
    chk.add_argument("--fix", action="store_true", help="Remove orphan blobs and dangling records")
    chk.add_argument("--dry-run", action="store_true", help="With --fix, only log what would change")

    rs = sub.add_parser("reset", help="Delete the catalog and all blobs")
    rs.add_argument("--yes", action="store_true", help="Confirm wiping the store")

    return p.parse_args(argv)

def print_files(files):
    if not files:
        print("No files.")
        return
    print("id                                    | type | size       | uploaded                  | folder | name")
    print("--------------------------------------+------+------------+---------------------------+--------+-----")
    for f in files:
        uploaded = f.upload_date.strftime("%Y-%m-%d %H:%M:%S %Z")
        folder = "yes" if f.folder_id else ""
        print(f"{f.id.ljust(37)} | {f.type.ljust(4)} | {format_size(f.size).rjust(10)} | {uploaded.ljust(25)} | {folder.ljust(6)} | {f.display_name}")

def run_command(args, app: DocShelfApp):
    cmd = args.command

    if cmd == "list":
        if args.search:
            files = app.search_files(args.search)
            if args.type:
                files = [f for f in files if f.type == args.type]
        else:
            folder = None if args.root else (args.folder or ANY_FOLDER)
            files = app.list_files(file_type=args.type, folder_id=folder, sort_by=args.sort, order=args.order)
        print_files(files)

    elif cmd == "show":
        stored = app.get_file(args.file_id)
        rec = stored.record
        print(f"id:            {rec.id}")
        print(f"display_name:  {rec.display_name}")
        print(f"original_name: {rec.original_name}")
        print(f"type:          {rec.type}")
        print(f"size:          {format_size(rec.size)} ({rec.size} bytes)")
        print(f"uploaded:      {rec.upload_date.isoformat()}")
        print(f"folder:        {rec.folder_id or ''}")
        if isinstance(stored.content, str):
            print()
            print(stored.content)

    elif cmd == "upload":
        if args.name and len(args.paths) > 1:
            raise SystemExit("--name can only be used with a single file")
        for path in args.paths:
            try:
                data = path.read_bytes()
            except OSError as e:
                raise InvalidArgumentError(f"Cannot read {path}: {e.strerror or e}") from e
            rec = app.upload_file(data, args.name or path.name, folder_id=args.folder)
            print(f"Uploaded {rec.original_name} -> {rec.id}")

    elif cmd == "download":
        dl = app.download_file(args.file_id)
        out = args.output if args.output else Path.cwd()
        if out.is_dir():
            out = out / sanitize_filename(dl.filename)
        out.write_bytes(dl.content)
        print(f"Saved {dl.filename} ({format_size(len(dl.content))}) to {out}")

    elif cmd == "delete":
        app.delete_file(args.file_id)
        print(f"Deleted {args.file_id}")

    elif cmd == "clear":
        if not args.yes:
            raise SystemExit("Refusing to clear all files without --yes")
        removed = app.clear_all()
        print(f"Cleared {removed} files")

    elif cmd == "rename":
        rec = app.rename_file(args.file_id, args.name)
        print(f"Renamed {rec.id} to {rec.display_name}")

    elif cmd == "move":
        rec = app.move_file(args.file_id, args.folder)
        print(f"Moved {rec.id} to {rec.folder_id or 'root'}")

    elif cmd == "folders":
        folders = app.list_folders()
        if not folders:
            print("No folders.")
        for folder in folders:
            count = len(app.list_files(folder_id=folder.id))
            print(f"{folder.id.ljust(39)} | {str(count).rjust(5)} files | {folder.name}")

    elif cmd == "mkdir":
        folder = app.create_folder(args.name)
        print(f"Created folder {folder.name} -> {folder.id}")

    elif cmd == "rename-folder":
        folder = app.rename_folder(args.folder_id, args.name)
        print(f"Renamed folder {folder.id} to {folder.name}")

    elif cmd == "rmdir":
        removed = app.delete_folder(args.folder_id)
        print(f"Deleted folder {args.folder_id} ({removed} files)")

    elif cmd == "stats":
        s = app.stats()
        print(f"Total files: {s.total_files}")
        print(f"Markdown:    {s.md_files}")
        print(f"PDF:         {s.pdf_files}")
        print(f"Total size:  {format_size(s.total_size)}")

    elif cmd == "check":
        checker = ConsistencyChecker(app.db, app.blobs, show_progress=True)
        report = checker.scan()
        if args.csv:
            checker.write_csv(report, args.csv)
        print(f"Orphan blobs:     {len(report.orphan_blobs)}")
        print(f"Dangling records: {len(report.dangling_records)}")
        if args.fix and not report.is_clean:
            fixes = checker.reconcile(report, dry_run=args.dry_run)
            print(f"{'Would apply' if args.dry_run else 'Applied'} {fixes} fixes")

def main(argv=None):
    args = parse_args(argv)

    # 1. Setup
    home = args.home.expanduser().resolve()
    setup_logging(home, args.verbose)

    db_path = args.db if args.db else home / config.DB_FILENAME
    content_dir = args.content_dir if args.content_dir else home / config.CONTENT_DIRNAME

    # Reset works on raw files; don't open the catalog we're about to delete
    if args.command == "reset":
        if not args.yes:
            logging.error("Refusing to reset the store without --yes")
            sys.exit(1)
        removed = reset_storage(db_path, content_dir)
        print(f"Store reset ({removed} blobs removed)")
        return

    # 2. Execution
    app = DocShelfApp(db_path, content_dir, show_progress=True)
    try:
        with app:
            run_command(args, app)
    except DocShelfError as e:
        print(f"error [{e.kind}]: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)

if __name__ == "__main__":
    main()
