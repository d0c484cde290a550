"""
Example: Basic usage with odata_node
====================================

This example runs requests against the public TripPin sample service.
"""

import logging

from odata_node import (
    BatchExecutor,
    ConnectionContext,
    NodeOperationError,
    NodeParameters,
    ODataConfig,
    QueryOptions,
    StaticCredentialStore,
)


def example_basic_query():
    """GET with discrete query options."""

    cfg = ODataConfig(base_url="https://services.odata.org/TripPinRESTierService/")

    with BatchExecutor(cfg) as ex:
        report = ex.run(
            [{}],
            NodeParameters(
                resource="People",
                options=QueryOptions(
                    select="FirstName, LastName, UserName",
                    filter="LastName eq 'Russell' or FirstName eq 'Scott'",
                    orderby="LastName desc",
                    top=10,
                ),
            ),
        )
        for record in report.records:
            print(record.source_index, record.payload)


def example_per_item_parameters():
    """One GET per input item, continuing past failures."""

    users = [{"user": "scottketchum"}, {"user": "nobody"}, {"user": "russellwhyte"}]

    with ConnectionContext(
        "https://services.odata.org/TripPinRESTierService/",
        continue_on_fail=True,
    ) as conn:
        report = conn.executor().run(
            users,
            lambda ctx: NodeParameters(resource=f"People('{ctx.item['user']}')"),
        )
        for out in report.outputs:
            print(out)


def example_authenticated_post():
    """POST with basic authentication, failing fast."""

    cfg = ODataConfig(
        base_url="https://your-service.example.com/odata/",
        auth_mode="genericCredentialType",
        auth_type="httpBasicAuth",
    )
    store = StaticCredentialStore({"httpBasicAuth": {"user": "USER", "password": "PASSWORD"}})

    with BatchExecutor(cfg, credentials=store) as ex:
        try:
            ex.run(
                [{}],
                NodeParameters(
                    method="POST",
                    resource="People",
                    data='{"UserName": "newuser", "FirstName": "New", "LastName": "User"}',
                ),
            )
        except NodeOperationError as e:
            print(f"Item {e.report.source_index} failed: {e.report.message}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Uncomment the example you want to run
    # example_basic_query()
    # example_per_item_parameters()
    # example_authenticated_post()

    print("Uncomment an example to run.")
