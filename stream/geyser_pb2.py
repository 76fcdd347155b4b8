"""
Yellowstone gRPC protobuf messages.

Compiled from ``stream/proto/geyser.proto`` when first imported
(``grpc.protos`` needs grpcio-tools). To vendor generated stubs instead:

   python -m grpc_tools.protoc \\
       -I. \\
       --python_out=. \\
       stream/proto/geyser.proto
"""

import grpc

_geyser = grpc.protos("stream/proto/geyser.proto")

CommitmentLevel = _geyser.CommitmentLevel
SlotStatus = _geyser.SlotStatus

# Subscribe request
SubscribeRequest = _geyser.SubscribeRequest
SubscribeRequestFilterAccounts = _geyser.SubscribeRequestFilterAccounts
SubscribeRequestFilterAccountsFilter = _geyser.SubscribeRequestFilterAccountsFilter
SubscribeRequestFilterSlots = _geyser.SubscribeRequestFilterSlots
SubscribeRequestFilterTransactions = _geyser.SubscribeRequestFilterTransactions
SubscribeRequestFilterBlocks = _geyser.SubscribeRequestFilterBlocks
SubscribeRequestFilterBlocksMeta = _geyser.SubscribeRequestFilterBlocksMeta
SubscribeRequestFilterEntry = _geyser.SubscribeRequestFilterEntry
SubscribeRequestAccountsDataSlice = _geyser.SubscribeRequestAccountsDataSlice
SubscribeRequestPing = _geyser.SubscribeRequestPing

# Subscribe updates
SubscribeUpdate = _geyser.SubscribeUpdate
SubscribeUpdateAccount = _geyser.SubscribeUpdateAccount
SubscribeUpdateAccountInfo = _geyser.SubscribeUpdateAccountInfo
SubscribeUpdateSlot = _geyser.SubscribeUpdateSlot
SubscribeUpdateTransaction = _geyser.SubscribeUpdateTransaction
SubscribeUpdateTransactionInfo = _geyser.SubscribeUpdateTransactionInfo
SubscribeUpdateTransactionStatus = _geyser.SubscribeUpdateTransactionStatus
SubscribeUpdateBlock = _geyser.SubscribeUpdateBlock
SubscribeUpdateBlockMeta = _geyser.SubscribeUpdateBlockMeta
SubscribeUpdateEntry = _geyser.SubscribeUpdateEntry
SubscribeUpdatePing = _geyser.SubscribeUpdatePing
SubscribeUpdatePong = _geyser.SubscribeUpdatePong
