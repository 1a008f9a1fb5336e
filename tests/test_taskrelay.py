import allure
from click.testing import CliRunner

from taskrelay import __version__
from taskrelay.main import taskrelay

pytestmark = [
    allure.epic("Task Dispatch"),
    allure.feature("CLI"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(taskrelay, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
