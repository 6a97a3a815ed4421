# sixfs

A small journaling file system of the kind used to teach operating systems,
in plain Python with no dependencies. Everything runs in memory: a disk image
is a `bytes` object that you build, load, change and save yourself.

## Layers

- **Disk layout** (`sixfs.layout`): 512-byte blocks arranged as
  `[ boot | superblock | log | inode blocks | free bitmap | data ]`.
  `Superblock`, `DiskInode` and `Dirent` pack to and unpack from bytes;
  `inode_block` and `bitmap_block` locate an inode and a bitmap bit.
- **Disk** (`sixfs.disk`): `MemoryDisk`, a block device kept in memory, with
  `from_image`, `read_block`, `write_block` and `to_bytes`.
- **Buffer cache** (`sixfs.bufcache`): `BufferCache` with `bread`, `bwrite`
  and `brelse`; unused buffers are recycled least recently used first.
- **Journal** (`sixfs.journal`): a redo `Log`. Group updates with
  `begin_op`/`end_op` or the `transaction()` context manager; the changed
  blocks are committed together when the last open operation ends, and a
  committed log is replayed when a `Log` is created.
- **Inodes, directories and paths** (`sixfs.fs`): `FileSystem` with inode
  allocation (`ialloc`), locking and reference counting (`ilock`,
  `iunlock`, `idup`, `iput`, `iunlockput`), `readi`, `writei`, `stati`,
  `dirlookup`, `dirlink`, and path lookup through `namei` and
  `nameiparent`. The helpers `skipelem` and `namecmp` are public too.
- **Open files and pipes** (`sixfs.files`, `sixfs.pipe`): a `FileTable` of
  reference-counted `File` handles on inodes or pipes, and a bounded,
  blocking `Pipe` of 512 bytes.
- **Console and keyboard** (`sixfs.console`, `sixfs.keyboard`): `Console`
  does line editing (kill line with ^U, backspace, end of file with ^D) and
  collects its echo in `output`; `KeyboardDecoder` turns PC scan codes into
  characters, tracking shift, control and caps lock.
- **Formatting** (`sixfs.formatting`): `format_message` and `cformat`, two
  small printf dialects understanding `%d`, `%x`, `%p`, `%s` (and `%c` in
  `format_message`).
- **Small tools** (`sixfs.tools`, `sixfs.matcher`): `echo`, `cat`,
  `fmtname`, `ls`, and a grep (`match`, `grep_lines`) that understands
  `^`, `.`, `*` and `$`.

## Installation

```
pip install .
```

## Building a disk image

```
sixfs-mkfs fs.img README.md _cat _echo
```

The first argument is the image to create (1000 blocks, 200 inodes); every
further file is copied into the root directory. Files must be named without
a directory part, as names may not contain `/`. A leading underscore is
dropped from the stored name. The root directory also holds `.` and `..`.
The command reports the layout and the bitmap it writes on standard output.

The same can be done from Python with `sixfs.mkfs.ImageBuilder`:

```python
from sixfs.mkfs import ImageBuilder

builder = ImageBuilder()
builder.add_file("hello.txt", b"hello, world\n")
image = builder.finish()          # the whole image as bytes
```

## Using an image

```python
from sixfs.disk import MemoryDisk
from sixfs.bufcache import BufferCache
from sixfs.journal import Log
from sixfs.fs import FileSystem
from sixfs.tools import ls

disk = MemoryDisk.from_image(image)
cache = BufferCache(disk)
log = Log(cache)
fs = FileSystem(cache, log)

for line in ls(fs, "/"):          # 'name type inode size' per entry
    print(line)

with log.transaction():
    ip = fs.namei("/hello.txt")
    fs.ilock(ip)
    data = fs.readi(ip, 0, ip.size)
    fs.iunlockput(ip)

saved = disk.to_bytes()
```

Relative paths need a working directory inode, passed as `cwd`.

## Searching text

```
sixfs-grep 'ab*c$' notes.txt
```

With no file arguments the pattern is matched against standard input.
Matching lines are printed unchanged; a last line without a newline is not
considered.

```python
from sixfs.matcher import match
from sixfs.formatting import format_message

match("^ab*c$", "abbbc")      # True
match("x.z", "wxyz")          # True

format_message("%s has %d blocks (%x)\n", "fs.img", 1000, 255)
# 'fs.img has 1000 blocks (FF)\n'
```

## Errors

Conditions the file system treats as fatal (running out of blocks or
inodes, freeing a free block, an oversized transaction, a misused lock)
raise `FsPanic` from `sixfs.layout`. Requests that simply cannot be carried
out, such as reading past the end of a file or a full file table, raise
`FsError` (an `OSError`) from `sixfs.fs`; `dirlink` raises
`FileExistsError` for a name already present, and a write to a pipe whose
read end is closed raises `BrokenPipeError`.

## What it does not do

- There is no system call layer: no `open`, `unlink`, `mkdir` or `link`
  on paths. Files are made with `ialloc` and `dirlink` directly, and
  nothing removes a directory entry.
- There are no processes, no scheduler, no program loading and no shell.
- There is no disk driver: images live in memory and are read and written
  as bytes by you, not mounted from a device.

## Running the tests

```
pip install .[test]
pytest
```