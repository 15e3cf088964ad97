"""Core constants used across observer modules.

This module centralizes ledger and pipeline constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

GENESIS_PULSE_NUMBER = 65537
UNIX_TIME_OF_GENESIS_PULSE = 1546300800
RECORD_DIGEST_SIZE = 28
MAX_STORED_INTEGER = 2**63 - 1
PULSE_NUMBER_SIZE = 4
REFERENCE_SCHEME_PREFIX = "insolar:"

DEFAULT_DATABASE_URL = "sqlite:///observer.db"
DEFAULT_EXPORT_URL = "http://127.0.0.1:5678"
DEFAULT_EXPORT_TIMEOUT = 30.0
DEFAULT_BATCH_SIZE = 1000
DEFAULT_REQUEST_DELAY = 3.0
DEFAULT_ATTEMPTS = 10
DEFAULT_ATTEMPT_INTERVAL = 3.0
DEFAULT_CACHE_PULSE_HORIZON = 0

MEMBER_CALL_METHOD = "Call"
CONSTRUCTOR_METHOD = "New"
CREATE_GROUP_METHOD = "CreateGroup"
GET_FREE_MIGRATION_ADDRESS_METHOD = "GetFreeMigrationAddress"
TRANSFER_TO_DEPOSIT_METHOD = "TransferToDeposit"

MEMBER_CREATE_CALL_SITES = ("member.create", "member.migrationCreate")
DEPOSIT_MIGRATION_CALL_SITE = "deposit.migration"
MEMBER_TRANSFER_CALL_SITE = "member.transfer"
DEPOSIT_TRANSFER_CALL_SITE = "deposit.transfer"
GROUP_CREATE_CALL_SITE = "group.create"
ADD_MIGRATION_ADDRESSES_CALL_SITE = "migration.addAddresses"

DEFAULT_ACCOUNT_PROTOTYPE = "0111A5w1GcnTsht4uW6GaqNMW2tAb8cvNwjgTY3brHJq"
DEFAULT_DEPOSIT_PROTOTYPE = "0111A7zbZEKGQhxFsWWTGsvcu6UFqyfdn1pHxjRaDxRF"
DEFAULT_MEMBER_PROTOTYPE = "0111A7ctasuNUug8BoK4VJNuAFJ73rnH8bH5zqd5HrDj"
DEFAULT_MIGRATION_SHARD_PROTOTYPE = "0111A6L4itZ8Q8P6UPkY3zAKNUWRHxAvcDDLcj8Grkzr"
DEFAULT_GROUP_PROTOTYPE = "0111A7bz1ZzDD9CJwckb5ufdarH7KtCwSSg2uVME3LN9"
DEFAULT_USER_PROTOTYPE = "0111A5tDgkPiUrCANU8NTa73b7w6pWGRAUxJTYFXwTnR"

GROUP_CREATED_STATUS = "SUCCESS"
MEMBER_CREATED_STATUS = "SUCCESS"
GENESIS_MEMBER_STATUS = "INTERNAL"

TRANSFER_KIND_STANDARD = "standard"
TRANSFER_KIND_WITHDRAW = "withdraw"
TRANSFER_KIND_MIGRATION = "migration"

# Names of objects created by the genesis pulse itself.
MIGRATION_ADMIN_MEMBER_NAME = "migration_admin_member"
MIGRATION_DEPOSIT_NAME = "migration_deposit"
