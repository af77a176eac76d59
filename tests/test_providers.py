"""Tests for the concrete language, build and debug providers."""

import asyncio
import sys
from pathlib import Path

import pytest

from toolbridge.errors import ActivationFailed, ProviderUnavailable
from toolbridge.models import (
    BuildEngineInfo,
    CommandResult,
    DebuggerInfo,
    LanguageServiceInfo,
    ProjectInfo,
    ToolchainInstallation,
)
from toolbridge.providers import (
    LanguageServerProcess,
    MSBuildProvider,
    MonoDebugProvider,
    OmniSharpProvider,
    RoslynProvider,
)
from toolbridge.providers.build import parse_errors, parse_warnings

VS2019 = ToolchainInstallation(
    version="16.11.34",
    display_name="Visual Studio Professional 2019",
    installation_path="/vs/2019",
    product_path="/vs/2019/devenv.exe"
)
VS2022 = ToolchainInstallation(
    version="17.10.1",
    display_name="Visual Studio Community 2022",
    installation_path="/vs/2022",
    product_path="/vs/2022/devenv.exe"
)
VS2022_OLD = ToolchainInstallation(
    version="17.9.6",
    display_name="Visual Studio Enterprise 2022",
    installation_path="/vs/2022e",
    product_path="/vs/2022e/devenv.exe"
)

ENGINE = "/vs/2022/MSBuild/Current/Bin/MSBuild.exe"
PROJECT = "/work/App/App.csproj"

BUILD_OUTPUT = """\
Program.cs(12,5): error CS1002: ; expected [/work/App/App.csproj]
Util.cs(3,1): warning CS0168: The variable 'e' is declared but never used
Build FAILED.
"""


def _msbuild_platform(make_platform, **kwargs):
    return make_platform(
        toolchains=[VS2019, VS2022_OLD, VS2022],
        engines={
            "/vs/2022": BuildEngineInfo(path=ENGINE, version="17.10.1"),
            "/vs/2019": BuildEngineInfo(path="/vs/2019/MSBuild.exe", version="16.11.34"),
        },
        **kwargs
    )


@pytest.mark.asyncio
async def test_msbuild_uses_latest_toolchain(make_platform) -> None:
    """Test MSBuild availability picks the numerically newest toolchain."""
    provider = MSBuildProvider(_msbuild_platform(make_platform))

    assert await provider.is_available() is True
    assert provider.toolchain == VS2022
    assert provider.engine.path == ENGINE


@pytest.mark.asyncio
async def test_msbuild_unavailable_without_toolchains(make_platform) -> None:
    """Test MSBuild is unavailable when nothing is installed."""
    assert await MSBuildProvider(make_platform()).is_available() is False


@pytest.mark.asyncio
async def test_msbuild_custom_path_parses_version(make_platform) -> None:
    """Test a custom MSBuild path is probed with -version."""
    custom = "/opt/msbuild/MSBuild.exe"
    platform = make_platform(
        files={custom},
        commands={(custom, ("-version",)): CommandResult(
            stdout="MSBuild version 17.8.3+195e7f5a3 for .NET Framework\n17.8.3.51904\n"
        )}
    )
    provider = MSBuildProvider(platform, custom_path=custom)

    assert await provider.is_available() is True
    assert provider.engine == BuildEngineInfo(path=custom, version="17.8.3")


@pytest.mark.asyncio
async def test_msbuild_build_runs_in_project_directory(make_platform) -> None:
    """Test build arguments and working directory."""
    platform = _msbuild_platform(make_platform)
    args = (PROJECT, "/p:Configuration=Release", "/p:Platform=x64", "/v:minimal", "/nologo")
    platform.commands[(ENGINE, args)] = CommandResult(stdout="Build succeeded.")
    provider = MSBuildProvider(platform)
    await provider.is_available()

    result = await provider.build(PROJECT, "Release", "x64")

    assert result.success is True
    assert result.output == "Build succeeded."
    assert platform.calls[-1] == (ENGINE, list(args), str(Path(PROJECT).parent))


@pytest.mark.asyncio
async def test_msbuild_build_failure_collects_errors_and_warnings(make_platform) -> None:
    """Test failing builds report parsed error and warning lines."""
    platform = _msbuild_platform(make_platform)
    args = (PROJECT, "/p:Configuration=Debug", "/p:Platform=Any CPU", "/v:minimal", "/nologo")
    platform.commands[(ENGINE, args)] = CommandResult(stdout=BUILD_OUTPUT, exit_code=1)
    provider = MSBuildProvider(platform)
    await provider.is_available()

    result = await provider.build(PROJECT)

    assert result.success is False
    assert result.errors == [
        "Program.cs(12,5): error CS1002: ; expected [/work/App/App.csproj]",
        "Build FAILED.",
    ]
    assert result.warnings == ["Util.cs(3,1): warning CS0168: The variable 'e' is declared but never used"]


@pytest.mark.asyncio
async def test_msbuild_clean_and_restore_targets(make_platform) -> None:
    """Test clean and restore pass their MSBuild targets."""
    platform = _msbuild_platform(make_platform)
    provider = MSBuildProvider(platform)
    await provider.is_available()

    restore = await provider.restore(PROJECT)
    await provider.clean(PROJECT)

    assert platform.calls[-2][1] == [PROJECT, "/t:Restore", "/v:minimal", "/nologo"]
    assert platform.calls[-1][1] == [PROJECT, "/t:Clean", "/v:minimal", "/nologo"]
    # Unknown commands exit 127 with a stderr message and no parsable error lines
    assert restore.success is False
    assert restore.errors == [f"{ENGINE}: command not found"]


@pytest.mark.asyncio
async def test_msbuild_leading_args_for_driver_engines(make_platform) -> None:
    """Test engines hosted by a driver get their leading arguments first."""
    platform = make_platform(
        toolchains=[VS2022],
        engines={"/vs/2022": BuildEngineInfo(path="/usr/bin/dotnet", leading_args=["msbuild"])}
    )
    provider = MSBuildProvider(platform)
    await provider.is_available()

    await provider.clean(PROJECT)

    assert platform.calls[-1][:2] == ("/usr/bin/dotnet", ["msbuild", PROJECT, "/t:Clean", "/v:minimal", "/nologo"])


@pytest.mark.asyncio
async def test_msbuild_requires_probe_before_use(make_platform) -> None:
    """Test build operations refuse to run before availability was probed."""
    with pytest.raises(ProviderUnavailable):
        await MSBuildProvider(make_platform()).build(PROJECT)


@pytest.mark.asyncio
async def test_msbuild_spawn_failure_is_unsuccessful_result(make_platform) -> None:
    """Test a spawn failure becomes an unsuccessful build result."""
    platform = _msbuild_platform(make_platform)
    args = (PROJECT, "/p:Configuration=Debug", "/p:Platform=Any CPU", "/v:minimal", "/nologo")
    platform.commands[(ENGINE, args)] = FileNotFoundError(ENGINE)
    provider = MSBuildProvider(platform)
    await provider.is_available()

    result = await provider.build(PROJECT)

    assert result.success is False
    assert result.errors and result.errors[0].startswith("Build failed:")


def test_parse_errors_and_warnings_ignore_other_lines() -> None:
    """Test output parsing only keeps error and warning lines."""
    assert parse_errors("Restore complete\n  App -> bin/App.dll\n") == []
    assert parse_warnings(BUILD_OUTPUT) == [
        "Util.cs(3,1): warning CS0168: The variable 'e' is declared but never used"
    ]


@pytest.mark.asyncio
async def test_mono_debugger_availability(make_platform) -> None:
    """Test the mono provider only accepts a mono debugger."""
    mono = DebuggerInfo(path="/usr/bin/mono", type="mono", version="6.12.0")
    dotnet = DebuggerInfo(path="dotnet", type="dotnet", version="built-in")

    available = MonoDebugProvider(make_platform(debugger=mono))
    assert await available.is_available() is True
    assert await available.debugger_info() == mono

    assert await MonoDebugProvider(make_platform(debugger=dotnet)).is_available() is False
    assert await MonoDebugProvider(make_platform()).debugger_info() is None


@pytest.mark.asyncio
async def test_mono_launch_configuration_for_executables(make_platform) -> None:
    """Test an Exe project gets a launch configuration."""
    platform = make_platform(projects={PROJECT: ProjectInfo(path=PROJECT, output_type="Exe")})

    config = await MonoDebugProvider(platform).create_debug_configuration(PROJECT)

    assert config["request"] == "launch"
    assert config["name"] == "Debug App"
    assert config["type"] == "mono"
    assert config["program"] == "${workspaceFolder}/bin/Debug/App.exe"


@pytest.mark.asyncio
async def test_mono_attach_configuration_for_libraries(make_platform) -> None:
    """Test non-executable projects get an attach configuration."""
    project = "C:\\src\\Lib\\Lib.csproj"
    platform = make_platform(projects={project: ProjectInfo(path=project, output_type="Library")})

    config = await MonoDebugProvider(platform).create_debug_configuration(project)

    assert config == {
        "name": "Attach to Lib",
        "type": "mono",
        "request": "attach",
        "address": "localhost",
        "port": 55555
    }


@pytest.mark.asyncio
async def test_mono_configuration_without_project_metadata(make_platform) -> None:
    """Test unreadable project metadata raises ProviderUnavailable."""
    with pytest.raises(ProviderUnavailable):
        await MonoDebugProvider(make_platform()).create_debug_configuration(PROJECT)


def test_mono_supports_only_framework_monikers(make_platform) -> None:
    """Test framework support covers net20 through net48."""
    provider = MonoDebugProvider(make_platform())
    assert provider.supports_framework("net48") is True
    assert provider.supports_framework("NET472") is True
    assert provider.supports_framework("net8.0") is False


@pytest.mark.asyncio
async def test_omnisharp_custom_path_wins(make_platform, make_language_server_probe) -> None:
    """Test a configured OmniSharp path is used before any probe."""
    platform = make_platform(
        files={"/tools/omnisharp"},
        language_server_probe=make_language_server_probe("/other/omnisharp")
    )
    provider = OmniSharpProvider(platform, custom_path="/tools/omnisharp")

    assert await provider.is_available() is True
    assert provider.server_path == "/tools/omnisharp"
    command, args, env = provider.server_command()
    assert command == "/tools/omnisharp"
    assert args[:2] == ["--languageserver", "--hostPID"]
    assert env is None


@pytest.mark.asyncio
async def test_omnisharp_probe_then_common_paths(make_platform, make_language_server_probe) -> None:
    """Test OmniSharp discovery falls back from the probe to common locations."""
    probed = OmniSharpProvider(make_platform(language_server_probe=make_language_server_probe("/home/u/omnisharp")))
    assert await probed.is_available() is True
    assert probed.server_path == "/home/u/omnisharp"

    common = OmniSharpProvider(make_platform(
        files={"/opt/homebrew/bin/omnisharp"},
        language_server_probe=make_language_server_probe(None)
    ))
    assert await common.is_available() is True
    assert common.server_path == "/opt/homebrew/bin/omnisharp"

    assert await OmniSharpProvider(make_platform()).is_available() is False


def test_omnisharp_server_command_requires_probe(make_platform) -> None:
    """Test the server command is unavailable before discovery."""
    with pytest.raises(ProviderUnavailable):
        OmniSharpProvider(make_platform()).server_command()


def test_roslyn_preferred_installation_selection(make_platform) -> None:
    """Test 'latest' picks the newest version and other values match name or version."""
    installations = [VS2019, VS2022_OLD, VS2022]

    assert RoslynProvider(make_platform()).select_preferred_installation(installations) == VS2022
    assert RoslynProvider(make_platform(), preferred_version="2019").select_preferred_installation(
        installations) == VS2019
    assert RoslynProvider(make_platform(), preferred_version="17.9").select_preferred_installation(
        installations) == VS2022_OLD
    assert RoslynProvider(make_platform(), preferred_version="2015").select_preferred_installation(
        installations) == VS2019


@pytest.mark.asyncio
async def test_roslyn_availability_and_server_environment(make_platform, tmp_path) -> None:
    """Test Roslyn is found inside the preferred toolchain and pinned to .NET Framework."""
    server = "/vs/2022/LanguageServer/Microsoft.CodeAnalysis.LanguageServer.exe"
    platform = make_platform(
        toolchains=[VS2019, VS2022],
        language_services={"/vs/2022": LanguageServiceInfo(path=server, version="17.10.1")}
    )
    provider = RoslynProvider(platform, log_directory=tmp_path / "logs")

    assert await provider.is_available() is True
    command, args, env = provider.server_command()

    assert command == server
    assert args == ["--logLevel", "Information", "--extensionLogDirectory", str(tmp_path / "logs")]
    assert env["DOTNET_ROLL_FORWARD"] == "Disable"
    assert env["DOTNET_FRAMEWORK_VERSION"] == "4.8"
    assert (tmp_path / "logs").is_dir()


@pytest.mark.asyncio
async def test_roslyn_unavailable_without_language_service(make_platform) -> None:
    """Test Roslyn is unavailable when the preferred toolchain has no server."""
    provider = RoslynProvider(make_platform(toolchains=[VS2022]))
    assert await provider.is_available() is False
    assert await RoslynProvider(make_platform()).is_available() is False


@pytest.mark.asyncio
async def test_language_server_process_start_and_stop() -> None:
    """Test a long-running server survives the grace period and stops cleanly."""
    process = LanguageServerProcess(
        "sleeper", sys.executable, ["-c", "import time; time.sleep(30)"],
        startup_grace=0.2, stop_timeout=2.0
    )

    await process.start()
    assert process.running is True
    reader, writer = process.transport
    assert reader is not None and writer is not None

    await process.stop()
    assert process.running is False
    with pytest.raises(ProviderUnavailable):
        process.transport


@pytest.mark.asyncio
async def test_language_server_process_early_exit_is_activation_failure() -> None:
    """Test a server that exits during startup fails activation."""
    process = LanguageServerProcess("quitter", sys.executable, ["-c", "raise SystemExit(3)"], startup_grace=5.0)

    with pytest.raises(ActivationFailed) as excinfo:
        await process.start()

    assert "code 3" in str(excinfo.value)
    assert process.running is False


@pytest.mark.asyncio
async def test_language_server_process_missing_binary() -> None:
    """Test a missing server binary fails activation."""
    process = LanguageServerProcess("ghost", "/nonexistent/omnisharp", [], startup_grace=0.1)

    with pytest.raises(ActivationFailed):
        await process.start()


@pytest.mark.asyncio
async def test_provider_restart_replaces_server_process(make_platform) -> None:
    """Test restart stops the old server and starts a new one."""
    platform = make_platform(files={sys.executable})
    provider = OmniSharpProvider(platform, custom_path=sys.executable, startup_grace=0.2)
    await provider.is_available()
    provider.server_command = lambda: (sys.executable, ["-c", "import time; time.sleep(30)"], None)

    await provider.activate()
    first = provider.server
    await provider.restart()

    assert provider.running is True
    assert provider.server is not first
    assert first.running is False

    await provider.deactivate()
    assert provider.server is None


@pytest.mark.asyncio
async def test_language_server_output_is_drained_before_a_client_attaches(tmp_path) -> None:
    """Test a chatty server keeps running while nobody reads its stdout."""
    marker = tmp_path / "wrote-everything"
    script = (
        "import sys, time\n"
        "sys.stdout.write('x' * (1024 * 1024))\n"
        "sys.stdout.flush()\n"
        f"open({str(marker)!r}, 'w').close()\n"
        "time.sleep(30)\n"
    )
    process = LanguageServerProcess("chatty", sys.executable, ["-c", script], startup_grace=0.2, stop_timeout=2.0)

    await process.start()
    try:
        for _ in range(100):
            if marker.exists():
                break
            await asyncio.sleep(0.05)
        assert marker.exists()
    finally:
        await process.stop()
