"""
Command-line front end for filing jobsite reports.

    jobsite-report reference
    jobsite-report submit --job-id J1 --crew-member-id C1 --trade Framing \\
        --work "Framed north wall" --location "Level 2" --status "In progress" \\
        --photo wall1.jpg --photo wall2.jpg
"""
import argparse
import asyncio
import logging
import sys

from jobsite.client.endpoint_client import EndpointClient
from jobsite.client.exceptions import JobsiteClientError
from jobsite.client.form import ReportForm
from jobsite.client.models import PhotoTransport
from jobsite.config import settings
from jobsite.core.logging import setup_logging

logger = logging.getLogger(__name__)

FIELD_ARGUMENTS = [
	("--job-id", "job_id", True, "Job site id"),
	("--crew-member-id", "crew_member_id", True, "Crew member id"),
	("--trade", "trade_task_type", True, "Trade / task type"),
	("--work", "work_performed", True, "Work performed"),
	("--location", "location_on_site", True, "Location on site"),
	("--status", "status", True, "Status"),
	("--issues", "issues_concerns", False, "Issues / concerns"),
	("--materials-used", "materials_used", False, "Materials used, one per line or comma separated"),
	("--materials-needed", "materials_needed", False, "Materials needed, one per line or comma separated"),
	("--weather", "weather_conditions", False, "Weather conditions"),
]


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="jobsite-report", description="Jobsite field report client")
	parser.add_argument("--endpoint", default=settings.ENDPOINT_URL, help="Report endpoint URL")
	parser.add_argument("--api-key", default=settings.CLIENT_API_KEY, help="Endpoint API key")
	subparsers = parser.add_subparsers(dest="command", required=True)

	subparsers.add_parser("reference", help="List job sites and crew members")

	submit = subparsers.add_parser("submit", help="Submit a field report")
	for flag, dest, required, help_text in FIELD_ARGUMENTS:
		submit.add_argument(flag, dest=dest, required=required, default="", help=help_text)
	submit.add_argument("--photo", dest="photos", action="append", default=[], help="Photo file, repeatable")
	submit.add_argument(
		"--transport",
		choices=[transport.value for transport in PhotoTransport],
		default=settings.PHOTO_TRANSPORT,
		help="Upload photos first, or embed them in the submission",
	)
	return parser


def print_status(message: str, kind: str) -> None:
	if not message or kind == "hidden":
		return
	stream = sys.stderr if kind == "error" else sys.stdout
	print(message, file=stream)


async def list_reference(client: EndpointClient) -> int:
	data = await client.fetch_reference_data()
	print("Job sites:")
	for site in data.job_sites:
		print(f"  {site.id}\t{site.label}")
	print("Crew members:")
	for member in data.crew_members:
		print(f"  {member.id}\t{member.label}")
	return 0


async def submit_report(client: EndpointClient, args: argparse.Namespace) -> int:
	form = ReportForm.from_settings(client, on_status=print_status, transport=PhotoTransport(args.transport))

	for _, dest, _, _ in FIELD_ARGUMENTS:
		form.set_field(dest, getattr(args, dest))

	if args.photos:
		await form.select_photos(args.photos)

	result = await form.submit()
	print(f"Submission id: {result.submission_id}")
	print(f"Recorded at:   {result.timestamp}")
	return 0


async def run(args: argparse.Namespace) -> int:
	async with EndpointClient(args.endpoint, timeout=settings.REQUEST_TIMEOUT, api_key=args.api_key) as client:
		if args.command == "reference":
			return await list_reference(client)
		return await submit_report(client, args)


def main(argv=None) -> int:
	setup_logging()
	args = build_parser().parse_args(argv)

	try:
		return asyncio.run(run(args))
	except JobsiteClientError as e:
		logger.error(f"{type(e).__name__}: {e}")
		return 1


if __name__ == "__main__":
	sys.exit(main())
