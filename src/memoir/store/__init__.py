"""File-per-project JSON store.

Layout:
    data/
    ├── 1718000000000/                 # One directory per project, named by id
    │   ├── project.json               # Project record (arbitrary fields)
    │   ├── memories.json              # Interview answers, display order
    │   └── chapters.json              # Chapters, display order
    └── project.json                   # Legacy flat layout, migrated at startup

Every write replaces a whole file (temp file + rename). There is no locking:
concurrent writers to the same collection are last-write-wins.
"""
