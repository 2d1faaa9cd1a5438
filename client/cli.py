"""Command-line front end for the student dashboard.

Usage:
    student-dashboard login admin@university.edu
    student-dashboard students --status pending
    student-dashboard stats
"""
import argparse
import getpass
import json
import sys

import httpx

from client.api_client import ApiError, DashboardClient

STUDENT_FIELDS = (
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
    ("course", "course"),
    ("status", "status"),
    ("student_id", "studentId"),
    ("enrollment_date", "enrollmentDate"),
    ("phone", "phone"),
    ("address", "address"),
    ("notes", "notes"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="student-dashboard", description="Student management dashboard client")
    parser.add_argument("--base-url", help="API base URL (default: $API_BASE_URL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Log in and remember the session")
    login_parser.add_argument("email")
    login_parser.add_argument("--password", help="Prompted for when omitted")

    subparsers.add_parser("logout", help="Forget the stored session")
    subparsers.add_parser("whoami", help="Show the logged-in user")
    subparsers.add_parser("stats", help="Show dashboard statistics")

    list_parser = subparsers.add_parser("students", help="List students")
    list_parser.add_argument("--course")
    list_parser.add_argument("--status")

    show_parser = subparsers.add_parser("show", help="Show one student")
    show_parser.add_argument("id", type=int)

    add_parser = subparsers.add_parser("add", help="Add a student")
    update_parser = subparsers.add_parser("update", help="Update fields of a student")
    update_parser.add_argument("id", type=int)
    for name, _ in STUDENT_FIELDS:
        flag = f"--{name.replace('_', '-')}"
        add_parser.add_argument(flag, dest=name)
        update_parser.add_argument(flag, dest=name)

    delete_parser = subparsers.add_parser("delete", help="Delete a student")
    delete_parser.add_argument("id", type=int)
    return parser


def collect_fields(args: argparse.Namespace) -> dict:
    return {
        wire_name: getattr(args, name)
        for name, wire_name in STUDENT_FIELDS
        if getattr(args, name) is not None
    }


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def run_command(client: DashboardClient, args: argparse.Namespace) -> int:
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        user = client.login(args.email, password)
        print(f"Logged in as {user['name']} ({user['email']})")
        return 0

    if args.command == "logout":
        client.logout()
        print("Logged out")
        return 0

    if not client.is_authenticated:
        print("Not logged in. Run 'student-dashboard login <email>' first.", file=sys.stderr)
        return 1

    if args.command == "whoami":
        _print_json(client.verify())
    elif args.command == "stats":
        _print_json(client.dashboard_stats())
    elif args.command == "students":
        _print_json(client.filter_students(course=args.course, status=args.status))
    elif args.command == "show":
        _print_json(client.get_student(args.id))
    elif args.command == "add":
        _print_json(client.create_student(collect_fields(args)))
    elif args.command == "update":
        _print_json(client.update_student(args.id, collect_fields(args)))
    elif args.command == "delete":
        client.delete_student(args.id)
        print(f"Deleted student {args.id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    client = DashboardClient(base_url=args.base_url)
    try:
        return run_command(client, args)
    except ApiError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        for error in exc.errors:
            print(f"  {error.get('field')}: {error.get('message')}", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"Could not reach the API: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
