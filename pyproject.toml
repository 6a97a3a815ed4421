[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sixfs"
version = "0.1.0"
description = "A small journaling file system in memory: disk image builder, buffer cache, redo log, inodes, directories, pipes, console and small tools"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "journal", "inode", "buffer-cache", "disk-image", "teaching"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sixfs-mkfs = "sixfs.mkfs:main"
sixfs-grep = "sixfs.matcher:main"

[tool.hatch.build.targets.wheel]
packages = ["sixfs"]

[tool.pytest.ini_options]
addopts = "-ra"
