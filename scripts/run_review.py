#!/usr/bin/env python3
"""Run a PR review locally and print the result as JSON."""
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from src.services.reviewer.service import review_pull_request_reference

async def main():
    if len(sys.argv) < 2:
        print("usage: run_review.py <PR url or owner/repo#123> [lens ...]")
        sys.exit(1)
    review = await review_pull_request_reference(sys.argv[1], sys.argv[2:] or None)
    print(review.model_dump_json(indent=2))

if __name__ == "__main__":
    asyncio.run(main())
