"""
Django management command to create the dispatch Kafka topics
"""
from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient, NewTopic
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.events.constants import KAFKA_TOPICS


class Command(BaseCommand):
    help = "Creates all Kafka topics the dispatch service publishes to"

    def add_arguments(self, parser):
        parser.add_argument(
            "--partitions",
            type=int,
            default=3,
            help="Number of partitions for each topic (default: 3)",
        )
        parser.add_argument(
            "--replication-factor",
            type=int,
            default=1,
            help="Replication factor for each topic (default: 1)",
        )

    def handle(self, *args, **options):
        if not settings.KAFKA_BOOTSTRAP_SERVERS:
            raise CommandError("KAFKA_BOOTSTRAP_SERVERS not configured in settings")

        admin_client = AdminClient({"bootstrap.servers": settings.KAFKA_BOOTSTRAP_SERVERS})

        topics = [
            NewTopic(
                topic,
                num_partitions=options["partitions"],
                replication_factor=options["replication_factor"],
            )
            for topic in KAFKA_TOPICS.values()
        ]
        for topic in topics:
            self.stdout.write(f"Preparing to create topic: {topic.topic}")

        futures = admin_client.create_topics(topics)

        created_count = 0
        for topic_name, future in futures.items():
            try:
                future.result()
            except KafkaException as e:
                if "already exists" in str(e).lower():
                    self.stdout.write(self.style.WARNING(f"Topic {topic_name} already exists"))
                    created_count += 1
                else:
                    self.stdout.write(self.style.ERROR(f"Failed to create topic {topic_name}: {e}"))
                continue
            self.stdout.write(self.style.SUCCESS(f"Successfully created topic: {topic_name}"))
            created_count += 1

        self.stdout.write(
            self.style.SUCCESS(f"\nCompleted! {created_count}/{len(KAFKA_TOPICS)} topics created/verified.")
        )
