#!/usr/bin/env python3
"""
Development Bootstrap Script for the Tubely Backend.

Prepares a local environment for the upload API. It is idempotent and can be
run repeatedly.

- Creates the ``videos`` collection and its owner index in MongoDB
- Optionally creates the video bucket in S3/MinIO
- Optionally seeds a draft video for a user and prints a bearer token for them

Usage:
    python scripts/init_db.py [options]

Options:
    --drop              Drop the videos collection first (WARNING: destructive)
    --create-bucket     Create the configured S3 bucket if it does not exist
    --seed-user USER_ID Create a draft video owned by USER_ID and print a token
    --verbose           Display detailed operation logs

Configuration is read the same way the API reads it (environment variables and
.env via tubely.config.Settings).
"""

import argparse
import sys
import uuid

from datetime import UTC, datetime

import boto3

from botocore.exceptions import BotoCoreError, ClientError
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, OperationFailure, ServerSelectionTimeoutError

from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.database import VIDEOS_COLLECTION
from tubely.models.video import Video


CONNECTION_TIMEOUT_MS = 5000


class EnvironmentInitializer:
    """Runs the bootstrap steps against the configured MongoDB and bucket."""

    def __init__(self, settings: Settings, verbose: bool = False):
        self.settings = settings
        self.verbose = verbose
        self.client: MongoClient | None = None
        self.db: Database | None = None
        self._error_count = 0

    def log(self, message: str, level: str = "INFO") -> None:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
        if level == "DEBUG" and not self.verbose:
            return
        print(f"[{timestamp}] [{level}] {message}")

    def connect(self) -> bool:
        """
        Connect to MongoDB and verify with a ping.

        Returns:
            True if connection successful, False otherwise.
        """
        self.log(f"Connecting to MongoDB database '{self.settings.mongodb_db_name}'")
        try:
            self.client = MongoClient(
                self.settings.mongodb_uri,
                serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS,
                uuidRepresentation="standard",
            )
            self.client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            self.log(f"MongoDB connection failed: {e}", "ERROR")
            return False

        self.db = self.client[self.settings.mongodb_db_name]
        self.log("Connected to MongoDB")
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.log("MongoDB connection closed", "DEBUG")

    def drop_videos(self) -> None:
        self.log(f"Dropping collection '{VIDEOS_COLLECTION}'", "WARNING")
        self.db.drop_collection(VIDEOS_COLLECTION)

    def create_indexes(self) -> None:
        """Create the owner index used when listing a user's videos."""
        try:
            name = self.db[VIDEOS_COLLECTION].create_index(
                [("user_id", ASCENDING), ("created_at", DESCENDING)],
                name="user_id_created_at",
            )
            self.log(f"Ensured index '{name}' on '{VIDEOS_COLLECTION}'")
        except OperationFailure as e:
            self._error_count += 1
            self.log(f"Index creation failed: {e}", "ERROR")

    def create_bucket(self) -> None:
        """Create the video bucket unless it already exists."""
        bucket = self.settings.s3_bucket_name
        s3_client = boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key_id,
            aws_secret_access_key=self.settings.s3_secret_access_key,
            region_name=self.settings.s3_region,
        )
        try:
            s3_client.head_bucket(Bucket=bucket)
            self.log(f"Bucket '{bucket}' already exists")
            return
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in ("404", "NoSuchBucket"):
                self._error_count += 1
                self.log(f"Could not check bucket '{bucket}': {e}", "ERROR")
                return
        except BotoCoreError as e:
            self._error_count += 1
            self.log(f"Could not reach object storage: {e}", "ERROR")
            return

        try:
            if self.settings.s3_region == "us-east-1":
                s3_client.create_bucket(Bucket=bucket)
            else:
                s3_client.create_bucket(
                    Bucket=bucket,
                    CreateBucketConfiguration={"LocationConstraint": self.settings.s3_region},
                )
            self.log(f"Created bucket '{bucket}'")
        except (ClientError, BotoCoreError) as e:
            self._error_count += 1
            self.log(f"Bucket creation failed: {e}", "ERROR")

    def seed_video(self, user_id: str) -> Video:
        """Insert a draft video for a user and return it."""
        video = Video(
            user_id=user_id,
            title="Sample video",
            description="Draft created by scripts/init_db.py",
        )
        self.db[VIDEOS_COLLECTION].insert_one(video.to_document())
        self.log(f"Seeded video {video.id} for user {user_id}")
        return video

    @property
    def succeeded(self) -> bool:
        return self._error_count == 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bootstrap a local Tubely environment")
    parser.add_argument("--drop", action="store_true", help="Drop the videos collection first")
    parser.add_argument(
        "--create-bucket", action="store_true", help="Create the S3 bucket if missing"
    )
    parser.add_argument(
        "--seed-user",
        metavar="USER_ID",
        help="Create a draft video owned by USER_ID and print a bearer token",
    )
    parser.add_argument("--verbose", action="store_true", help="Display detailed logs")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    initializer = EnvironmentInitializer(settings, verbose=args.verbose)

    if args.seed_user:
        try:
            uuid.UUID(args.seed_user)
        except ValueError:
            initializer.log("--seed-user must be a UUID", "ERROR")
            return 2

    if not initializer.connect():
        return 1

    try:
        if args.drop:
            initializer.drop_videos()
        initializer.create_indexes()

        if args.create_bucket:
            initializer.create_bucket()

        if args.seed_user:
            video = initializer.seed_video(args.seed_user)
            token = create_access_token(args.seed_user, settings)
            print()
            print(f"Video ID: {video.id}")
            print(f"Token:    {token}")
            print()
            print("Upload a thumbnail with:")
            print(
                f'  curl -H "Authorization: Bearer {token}" '
                f'-F "thumbnail=@thumb.png;type=image/png" '
                f"http://localhost:{settings.port}/api/v1/thumbnails/{video.id}"
            )
    finally:
        initializer.close()

    if initializer.succeeded:
        initializer.log("Initialization complete")
        return 0

    initializer.log("Initialization finished with errors", "ERROR")
    return 1


if __name__ == "__main__":
    sys.exit(main())
