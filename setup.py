"""Setup script for MiniMax Meter.

``pip install .`` installs the package and the ``minimax-meter`` command.
``python setup.py py2app`` builds the macOS .app bundle.
"""

import sys

from setuptools import find_packages, setup

APP = ["minimax_meter_app.py"]
APP_NAME = "MiniMax Meter"
APP_VERSION = "1.0.0"

OPTIONS = {
    "argv_emulation": False,
    "packages": ["minimax_meter", "rumps", "requests"],
    "plist": {
        "CFBundleName": APP_NAME,
        "CFBundleDisplayName": APP_NAME,
        "CFBundleIdentifier": "com.minimaxmenu.MinimaxMenuMonitor",
        "CFBundleVersion": APP_VERSION,
        "CFBundleShortVersionString": APP_VERSION,
        "LSUIElement": True,  # Menu bar only — no Dock icon
    },
}

py2app_kwargs = {}
if "py2app" in sys.argv:
    py2app_kwargs = {"app": APP, "options": {"py2app": OPTIONS}}

setup(
    name="minimax-meter",
    version=APP_VERSION,
    description="Mac menu bar app showing MiniMax coding plan usage",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "requests",
        'rumps; sys_platform == "darwin"',
    ],
    extras_require={
        "test": ["pytest"],
        "app": ['py2app; sys_platform == "darwin"'],
    },
    entry_points={
        "console_scripts": ["minimax-meter=minimax_meter.__main__:main"],
    },
    **py2app_kwargs,
)
