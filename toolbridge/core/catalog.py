"""
The fixed catalog of installable tools.

Each function builds a fresh ``MissingTool``; the classifier calls them on
every scan so nothing is shared between passes.
"""

from typing import List

from ..models.tool import MissingTool, ToolCategory, InstallMethod

DOTNET_DOWNLOAD_URL = "https://dotnet.microsoft.com/download"
MONO_DOWNLOAD_URL = "https://www.mono-project.com/download/stable/"
HOMEBREW_INSTALL = (
    '/bin/bash -c "$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
)

# Any of these counts as language support being present
PREFERRED_EXTENSIONS = [
    "muhammad-sammy.csharp",
    "ms-dotnettools.csharp",
    "ms-dotnettools.vscode-dotnet-runtime",
]


def dotnet_sdk() -> MissingTool:
    return MissingTool(
        id="dotnet-sdk",
        name=".NET SDK",
        description="Required for building and running .NET applications",
        required=True,
        category=ToolCategory.RUNTIME,
        install_method=InstallMethod.MANUAL,
        download_url=DOTNET_DOWNLOAD_URL,
        instructions=[
            f"Visit {DOTNET_DOWNLOAD_URL}",
            "Download the latest .NET SDK for your platform",
            "Run the installer and follow the instructions",
            "Restart your editor after installation",
        ]
    )


def language_extensions() -> List[MissingTool]:
    """Guided editor extensions, most portable first."""
    return [
        MissingTool(
            id="csharp-extension-sammy",
            name="C# Extension (muhammad-sammy)",
            description="Comprehensive C# support with OmniSharp integration, available on Open VSX",
            category=ToolCategory.LANGUAGE,
            install_method=InstallMethod.GUIDED,
            extension_id="muhammad-sammy.csharp",
            instructions=[
                "Open the Extensions view (Ctrl+Shift+X)",
                'Search for "muhammad-sammy.csharp"',
                "Click Install on the C# extension by muhammad-sammy",
                "Alternative: install from the Open VSX marketplace",
            ]
        ),
        MissingTool(
            id="csharp-extension-ms",
            name="C# Extension (Microsoft)",
            description="Official Microsoft C# extension with OmniSharp",
            category=ToolCategory.LANGUAGE,
            install_method=InstallMethod.GUIDED,
            extension_id="ms-dotnettools.csharp",
            instructions=[
                "Open the Extensions view (Ctrl+Shift+X)",
                'Search for "ms-dotnettools.csharp"',
                "Click Install on the official Microsoft C# extension",
            ]
        ),
    ]


def omnisharp_standalone(dotnet_path: str) -> MissingTool:
    return MissingTool(
        id="omnisharp-standalone",
        name="OmniSharp Language Server (Standalone)",
        description="Command-line OmniSharp for manual setup (fallback option)",
        category=ToolCategory.LANGUAGE,
        install_method=InstallMethod.AUTOMATIC,
        install_command=dotnet_path,
        install_args=["tool", "install", "-g", "omnisharp"]
    )


def mono(platform: str) -> MissingTool:
    """Mono runtime: Homebrew-guided on mac, manual download elsewhere."""
    description = "Required for .NET Framework development and debugging on non-Windows"
    if platform == "mac":
        return MissingTool(
            id="mono",
            name="Mono Framework",
            description=description,
            category=ToolCategory.DEBUG,
            install_method=InstallMethod.GUIDED,
            install_command="/opt/homebrew/bin/brew",
            install_args=["install", "mono"],
            instructions=[
                f"Install Homebrew if not already installed: {HOMEBREW_INSTALL}",
                "Run: brew install mono",
                f"Or download from: {MONO_DOWNLOAD_URL}",
            ]
        )

    return MissingTool(
        id="mono",
        name="Mono Framework",
        description=description,
        category=ToolCategory.DEBUG,
        install_method=InstallMethod.MANUAL,
        download_url=MONO_DOWNLOAD_URL,
        instructions=[
            f"Visit {MONO_DOWNLOAD_URL}",
            "Follow the instructions for your Linux distribution",
            "Common: sudo apt install mono-complete (Ubuntu/Debian)",
            "Or: sudo dnf install mono-complete (Fedora/RHEL)",
        ]
    )
