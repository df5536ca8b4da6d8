"""
Verification Gateway - Test Suite

Test modules mirror the package layout:
- test_processing: image decoding and tensor layout
- test_request_builder / test_response_decoder: Triton wire mapping
- test_connection / test_client: connection lifecycle against a mock Triton
- test_servicer: inbound gRPC service end to end
"""
