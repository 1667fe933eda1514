# CSV import service for the bucket ledger backend
