[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "retilab"
version = "0.1.0"
description = "Small client/server exercises over TCP and UDP sockets: authentication, routing, chat, shops, notes and two-player games."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "sockets",
    "tcp",
    "udp",
    "networking",
    "client-server",
    "education",
    "games",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Natural Language :: Italian",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: Internet",
    "Topic :: System :: Networking",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
retilab-auth-server = "retilab.auth_server:main"
retilab-routing-server = "retilab.routing:server_main"
retilab-routing-client = "retilab.routing:client_main"
retilab-chatvm-server = "retilab.chatvm_server:main"
retilab-chatvm-client = "retilab.chatvm_client:main"
retilab-caffe-server = "retilab.caffe:main"
retilab-caffe-client = "retilab.caffe_client:main"
retilab-christmas-server = "retilab.christmas:main"
retilab-christmas-client = "retilab.christmas_client:main"
retilab-enoteca-server = "retilab.enoteca:main"
retilab-hangman-server = "retilab.hangman:main"
retilab-hangman-client = "retilab.hangman_client:main"
retilab-connect-four-server = "retilab.connect_four:server_main"
retilab-connect-four-client = "retilab.connect_four:client_main"
retilab-tris-server = "retilab.tris:main"
retilab-rps-server = "retilab.rps:server_main"
retilab-rps-client = "retilab.rps:client_main"

[tool.hatch.build.targets.wheel]
packages = ["retilab"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
