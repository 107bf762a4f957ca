#!/usr/bin/env python3
"""Command-line interface for the FitBody client."""

import argparse
import getpass
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from fitbody.api import ArticleAPI, AuthAPI, HttpClient, MealAPI, WorkoutAPI
from fitbody.config import ClientConfig, load_config
from fitbody.data_layer.exceptions import ConfigError, FitBodyError
from fitbody.data_layer.models import MEAL_TYPES, WORKOUT_LEVELS
from fitbody.data_layer.storage import JsonFileStorage
from fitbody.navigation.guards import nutrition_entry_route
from fitbody.output.formatters import (
    format_article_markdown,
    format_articles_markdown,
    format_entities_json,
    format_guides_markdown,
    format_meal_plans_markdown,
    format_meals_markdown,
    format_result_json,
    format_setup_result_markdown,
    format_workouts_markdown,
    to_json_string,
)
from fitbody.stores.article_store import ArticleStore
from fitbody.stores.nutrition_store import NutritionStore
from fitbody.stores.session_store import SessionStore
from fitbody.stores.workout_store import WorkoutStore

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 3


@dataclass
class App:
    """The stores wired together for one CLI invocation."""

    config: ClientConfig
    session: SessionStore
    articles: ArticleStore
    workouts: WorkoutStore
    nutrition: NutritionStore

    @classmethod
    def from_config(cls, config: ClientConfig) -> "App":
        client = HttpClient.from_config(config)
        storage = JsonFileStorage(config.storage_dir)
        session = SessionStore(AuthAPI(client), storage)
        return cls(
            config=config,
            session=session,
            articles=ArticleStore(ArticleAPI(client), config.page_size),
            workouts=WorkoutStore(WorkoutAPI(client), config.page_size),
            nutrition=NutritionStore(MealAPI(client), session, storage, config.page_size),
        )


def _emit(args: argparse.Namespace, markdown: Callable[[], str], payload: Callable[[], object]) -> None:
    if args.output == "json":
        print(to_json_string(payload()))
    else:
        print(markdown())


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return EXIT_FAILURE


def _require_login(app: App) -> Optional[str]:
    user_id = app.session.user_id
    if not user_id:
        print("Error: Not logged in. Run 'fitbody login' first.", file=sys.stderr)
    return user_id


def cmd_login(app: App, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    print(f"Logging in as {args.username}...", file=sys.stderr)
    result = app.session.login(args.username, password)
    if not result.success:
        return _fail(result.error or "Login failed")
    print(f"✅ Logged in as {app.session.user_id}", file=sys.stderr)
    return EXIT_OK


def cmd_logout(app: App, args: argparse.Namespace) -> int:
    app.session.logout()
    print("Logged out", file=sys.stderr)
    return EXIT_OK


def cmd_whoami(app: App, args: argparse.Namespace) -> int:
    if not _require_login(app):
        return EXIT_FAILURE
    if args.refresh:
        result = app.session.refresh_user_data()
        if not result.success:
            return _fail(result.error or "Failed to refresh account")
    user = app.session.user or {}
    _emit(
        args,
        lambda: "\n".join(f"**{key}:** {value}" for key, value in user.items() if key != "password"),
        lambda: {k: v for k, v in user.items() if k != "password"},
    )
    return EXIT_OK


def cmd_articles(app: App, args: argparse.Namespace) -> int:
    store = app.articles
    if not store.fetch_list({"search": args.search}, page=args.page):
        return _fail(store.state.error)
    if app.session.user_id:
        store.fetch_favorites(app.session.user_id)
    _emit(
        args,
        lambda: format_articles_markdown(store.items, store.favorites, store.pagination),
        lambda: format_entities_json(store.items, store.pagination),
    )
    return EXIT_OK


def cmd_article(app: App, args: argparse.Namespace) -> int:
    store = app.articles
    if args.favorite:
        user_id = _require_login(app)
        if not user_id:
            return EXIT_FAILURE
        result = store.toggle_favorite(args.article_id, user_id)
        if not result.success:
            return _fail(result.error)
        print(f"Favorite {result.action}", file=sys.stderr)
        return EXIT_OK

    article = store.fetch_detail(args.article_id)
    if article is None:
        return _fail(store.state.detail_error)
    _emit(args, lambda: format_article_markdown(article), article.to_dict)
    return EXIT_OK


def cmd_workouts(app: App, args: argparse.Namespace) -> int:
    store = app.workouts
    filters = {"level": args.level, "search": args.search}
    if args.recommended:
        filters["is_recommended"] = True
    if not store.fetch_list(filters, page=args.page):
        return _fail(store.state.error)
    if app.session.user_id:
        store.fetch_favorites(app.session.user_id)
    _emit(
        args,
        lambda: format_workouts_markdown(store.items, store.favorites, store.pagination),
        lambda: format_entities_json(store.items, store.pagination),
    )
    return EXIT_OK


def cmd_guides(app: App, args: argparse.Namespace) -> int:
    store = app.workouts
    if args.favorite:
        user_id = _require_login(app)
        if not user_id:
            return EXIT_FAILURE
        result = store.toggle_favorite(args.workout_id, user_id)
        if not result.success:
            return _fail(result.error)
        print(f"Favorite {result.action}", file=sys.stderr)
        return EXIT_OK

    workout = store.fetch_detail(args.workout_id)
    if workout is None:
        return _fail(store.state.detail_error)
    guides = store.fetch_guides(args.workout_id)
    if store.state.guides_error:
        return _fail(store.state.guides_error)
    _emit(
        args,
        lambda: format_guides_markdown(workout.name, guides),
        lambda: {"workout": workout.to_dict(), "guides": [g.to_dict() for g in guides]},
    )
    return EXIT_OK


def cmd_meals(app: App, args: argparse.Namespace) -> int:
    store = app.nutrition
    store.set_filters({
        "dietary": args.dietary,
        "type": args.type,
        "cal_min": args.cal_min,
        "cal_max": args.cal_max,
        "minutes": args.minutes,
    })
    if not store.fetch_list(page=args.page):
        return _fail(store.state.error)
    _emit(
        args,
        lambda: format_meals_markdown(store.items),
        lambda: format_entities_json(store.items, store.pagination),
    )
    return EXIT_OK


def cmd_setup_plan(app: App, args: argparse.Namespace) -> int:
    if not _require_login(app):
        return EXIT_FAILURE
    preferences = {
        "mealTypes": args.meal_types,
        "dietary": args.dietary,
        "cal_min": args.cal_min,
        "cal_max": args.cal_max,
        "minutes": args.minutes,
    }
    print(f"Selecting meals for {', '.join(args.meal_types)}...", file=sys.stderr)
    result = app.nutrition.setup_meal_plan(preferences)
    _emit(args, lambda: format_setup_result_markdown(result), lambda: format_result_json(result))
    return EXIT_OK if result.success else EXIT_FAILURE


def cmd_plans(app: App, args: argparse.Namespace) -> int:
    if not _require_login(app):
        return EXIT_FAILURE
    store = app.nutrition
    if args.remove:
        result = store.remove_from_meal_plan(args.remove)
        if not result.success:
            return _fail(result.error)
        print(f"Removed meal plan {args.remove}", file=sys.stderr)
    elif args.add:
        result = store.add_to_meal_plan(args.add)
        if not result.success:
            return _fail(result.error)
        print(f"Added meal {args.add} to plan", file=sys.stderr)

    if not store.fetch_meal_plans():
        return _fail(store.state.error)
    if not store.is_setup_complete:
        print(f"No meal plans yet. Next step: {nutrition_entry_route(store)}", file=sys.stderr)
    _emit(
        args,
        lambda: format_meal_plans_markdown(store.meal_plans),
        lambda: format_entities_json(store.meal_plans),
    )
    return EXIT_OK


COMMANDS: Dict[str, Callable[[App, argparse.Namespace], int]] = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "articles": cmd_articles,
    "article": cmd_article,
    "workouts": cmd_workouts,
    "guides": cmd_guides,
    "meals": cmd_meals,
    "setup-plan": cmd_setup_plan,
    "plans": cmd_plans,
}


def _add_meal_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dietary", default="no-preferences", help="Dietary preference (default: no-preferences)")
    parser.add_argument("--cal-min", type=float, help="Minimum calories")
    parser.add_argument("--cal-max", type=float, help="Maximum calories")
    parser.add_argument("--minutes", type=float, help="Maximum preparation time in minutes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fitbody",
        description="Browse FitBody articles, workouts and meals, and set up a meal plan",
    )
    parser.add_argument("--config", type=str, help="Path to client YAML config (default: environment only)")
    parser.add_argument(
        "--output",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format: markdown (default) or json",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and save the session")
    login.add_argument("username")
    login.add_argument("--password", help="Password (prompted if omitted)")

    sub.add_parser("logout", help="Forget the saved session")

    whoami = sub.add_parser("whoami", help="Show the logged-in account")
    whoami.add_argument("--refresh", action="store_true", help="Reload the account from the server")

    articles = sub.add_parser("articles", help="List articles")
    articles.add_argument("--search", help="Search article titles")
    articles.add_argument("--page", type=int, default=1)

    article = sub.add_parser("article", help="Show one article")
    article.add_argument("article_id")
    article.add_argument("--favorite", action="store_true", help="Toggle the article as a favorite")

    workouts = sub.add_parser("workouts", help="List workouts")
    workouts.add_argument("--level", choices=WORKOUT_LEVELS)
    workouts.add_argument("--search", help="Search workout names")
    workouts.add_argument("--recommended", action="store_true")
    workouts.add_argument("--page", type=int, default=1)

    guides = sub.add_parser("guides", help="Show a workout's exercises")
    guides.add_argument("workout_id")
    guides.add_argument("--favorite", action="store_true", help="Toggle the workout as a favorite")

    meals = sub.add_parser("meals", help="List meals")
    meals.add_argument("--type", default="all", choices=("all",) + MEAL_TYPES)
    meals.add_argument("--page", type=int, default=1)
    _add_meal_filters(meals)

    setup = sub.add_parser("setup-plan", help="Pick meals and create a meal plan")
    setup.add_argument(
        "--meal-types",
        nargs="+",
        choices=MEAL_TYPES,
        default=["breakfast", "lunch", "dinner"],
        help="Meal types to plan (default: breakfast lunch dinner)",
    )
    _add_meal_filters(setup)

    plans = sub.add_parser("plans", help="Show or edit the meal plan")
    group = plans.add_mutually_exclusive_group()
    group.add_argument("--add", metavar="MEAL_ID", help="Add a meal to the plan")
    group.add_argument("--remove", metavar="PLAN_ID", help="Remove a plan entry")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        app = App.from_config(config)
        return COMMANDS[args.command](app, args)
    except FitBodyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
