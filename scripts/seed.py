# Run using python -m scripts.seed

import boto3

from app.settings import settings
from scripts.seed_data import build_ai_usage, build_equipment, build_global_exercises

TEST_ORGANIZATION_ID = "0b6f8f7e-3c1d-4a5e-8f2a-9d4c7b1e6a30"


def get_table():
    dynamodb = boto3.resource("dynamodb", region_name=settings.REGION)
    return dynamodb.Table(settings.DDB_TABLE_NAME)  # type: ignore


def seed_catalog(table):
    exercises = build_global_exercises()
    with table.batch_writer() as batch:
        for ex in exercises:
            batch.put_item(Item=ex.to_ddb_item())
    print(f"Seeded {len(exercises)} global exercises")


def seed_organization(table, organization_id: str):
    table.put_item(Item=build_ai_usage(organization_id).to_ddb_item())
    table.put_item(Item=build_equipment(organization_id).model_dump())
    print("Seeded AI usage and equipment for org", organization_id)


def main():
    table = get_table()

    seed_catalog(table)
    seed_organization(table, TEST_ORGANIZATION_ID)


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("Seeding failed:", e)
        raise
