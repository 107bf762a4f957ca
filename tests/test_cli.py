"""Tests for the command-line interface."""

import json

import pytest
from unittest.mock import Mock, patch

from fitbody import cli
from fitbody.cli import App, EXIT_CONFIG, EXIT_FAILURE, EXIT_OK, build_parser, main
from fitbody.config import ClientConfig
from fitbody.data_layer.exceptions import FitBodyError
from fitbody.data_layer.models import (
    Article,
    Meal,
    MealPlan,
    OperationResult,
    Pagination,
)
from fitbody.stores.article_store import ArticleStore
from fitbody.stores.nutrition_store import NutritionStore
from fitbody.stores.session_store import SessionStore
from fitbody.stores.workout_store import WorkoutStore


@pytest.fixture
def app():
    """Provide an App wired to mocked stores with a logged-in user."""
    session = Mock(spec=SessionStore)
    session.user_id = "u1"
    session.user = {"_id": "u1", "username": "sam", "password": "hash"}
    return App(
        config=ClientConfig(),
        session=session,
        articles=Mock(spec=ArticleStore),
        workouts=Mock(spec=WorkoutStore),
        nutrition=Mock(spec=NutritionStore),
    )


def run(app, argv):
    args = build_parser().parse_args(argv)
    return cli.COMMANDS[args.command](app, args)


class TestParser:
    """Tests for argument parsing."""

    def test_setup_plan_defaults(self):
        """Test default meal types and dietary preference."""
        args = build_parser().parse_args(["setup-plan"])

        assert args.meal_types == ["breakfast", "lunch", "dinner"]
        assert args.dietary == "no-preferences"

    def test_plans_add_and_remove_exclusive(self):
        """Test that add and remove cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["plans", "--add", "m1", "--remove", "p1"])


class TestCommands:
    """Tests for individual commands."""

    def test_login_failure(self, app, capsys):
        """Test a rejected login."""
        app.session.login.return_value = OperationResult.failure("Invalid credentials")

        assert run(app, ["login", "sam", "--password", "bad"]) == EXIT_FAILURE
        assert "Invalid credentials" in capsys.readouterr().err

    def test_login_prompts_for_password(self, app):
        """Test the password prompt when --password is missing."""
        app.session.login.return_value = OperationResult.ok({"_id": "u1"})

        with patch("fitbody.cli.getpass.getpass", return_value="secret"):
            assert run(app, ["login", "sam"]) == EXIT_OK

        app.session.login.assert_called_once_with("sam", "secret")

    def test_whoami_hides_password(self, app, capsys):
        """Test that the stored password hash is never printed."""
        assert run(app, ["--output", "json", "whoami"]) == EXIT_OK

        output = json.loads(capsys.readouterr().out)
        assert output == {"_id": "u1", "username": "sam"}

    def test_whoami_requires_login(self, app):
        """Test whoami without a session."""
        app.session.user_id = None

        assert run(app, ["whoami"]) == EXIT_FAILURE

    def test_articles_json(self, app, capsys):
        """Test listing articles as JSON."""
        store = app.articles
        store.fetch_list.return_value = True
        store.items = (Article(id="a1", title="Sleep"),)
        store.favorites = ()
        store.pagination = Pagination.from_page(2, 10, 1)

        assert run(app, ["--output", "json", "articles", "--search", "sl", "--page", "2"]) == EXIT_OK

        store.fetch_list.assert_called_once_with({"search": "sl"}, page=2)
        store.fetch_favorites.assert_called_once_with("u1")
        output = json.loads(capsys.readouterr().out)
        assert output["items"][0]["title"] == "Sleep"
        assert output["pagination"]["page"] == 2

    def test_article_favorite_toggle(self, app, capsys):
        """Test toggling an article favorite."""
        app.articles.toggle_favorite.return_value = OperationResult.ok(None, action="removed")

        assert run(app, ["article", "a1", "--favorite"]) == EXIT_OK

        app.articles.toggle_favorite.assert_called_once_with("a1", "u1")
        assert "Favorite removed" in capsys.readouterr().err

    @pytest.mark.parametrize("argv", [["article", "a1", "--favorite"], ["guides", "w1", "--favorite"]])
    def test_favorite_requires_login(self, app, capsys, argv):
        """Test that a logged-out toggle reports one error and calls nothing."""
        app.session.user_id = None

        assert run(app, argv) == EXIT_FAILURE

        err = capsys.readouterr().err
        assert err.count("Error:") == 1
        assert "Not logged in" in err
        app.articles.toggle_favorite.assert_not_called()
        app.workouts.toggle_favorite.assert_not_called()

    def test_setup_plan_failure_exit_code(self, app, capsys):
        """Test that a failed setup prints the result and exits non-zero."""
        app.nutrition.setup_meal_plan.return_value = OperationResult.failure(
            "No meals found matching your preferences."
        )

        assert run(app, ["setup-plan", "--meal-types", "dinner", "--cal-max", "500"]) == EXIT_FAILURE

        preferences = app.nutrition.setup_meal_plan.call_args.args[0]
        assert preferences["mealTypes"] == ["dinner"]
        assert preferences["cal_max"] == 500.0
        assert "No meals found" in capsys.readouterr().out

    def test_plans_add(self, app, capsys):
        """Test adding a meal and listing the plan."""
        store = app.nutrition
        store.add_to_meal_plan.return_value = OperationResult.ok(None)
        store.fetch_meal_plans.return_value = True
        store.is_setup_complete = True
        store.meal_plans = (
            MealPlan(id="p1", meal_id="m1", account_id="u1", meal=Meal(id="m1", name="Oats", type="breakfast")),
        )

        assert run(app, ["plans", "--add", "m1"]) == EXIT_OK

        store.add_to_meal_plan.assert_called_once_with("m1")
        assert "| Oats | Breakfast |" in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    def test_missing_config_file(self, tmp_path, capsys):
        """Test the configuration exit code."""
        code = main(["--config", str(tmp_path / "missing.yaml"), "logout"])

        assert code == EXIT_CONFIG
        assert "Configuration error" in capsys.readouterr().err

    def test_dispatches_command(self, app):
        """Test that main builds the app and runs the command."""
        with patch.object(App, "from_config", return_value=app) as factory:
            assert main(["logout"]) == EXIT_OK

        factory.assert_called_once()
        app.session.logout.assert_called_once_with()

    def test_fitbody_error_is_reported(self, app, capsys):
        """Test that library errors become exit code 1."""
        app.session.logout.side_effect = FitBodyError("storage unavailable")

        with patch.object(App, "from_config", return_value=app):
            assert main(["logout"]) == EXIT_FAILURE

        assert "storage unavailable" in capsys.readouterr().err

    def test_logout_with_file_storage(self, tmp_path, monkeypatch):
        """Test a real logout against file storage."""
        monkeypatch.setenv("FITBODY_STORAGE_DIR", str(tmp_path))

        assert main(["logout"]) == EXIT_OK

    def test_bad_log_level_is_config_error(self, tmp_path, capsys):
        """Test that an unknown log level exits with the configuration code."""
        path = tmp_path / "client.yaml"
        path.write_text("client:\n  log_level: LOUD\n")

        assert main(["--config", str(path), "logout"]) == EXIT_CONFIG
        assert "log_level" in capsys.readouterr().err
