"""
WriterID Portal Backend — Services Layer
=========================================

Gateways (external systems):
    - StorageService (abstract): AzureBlobStorageService, LocalStorageService
    - QueueService (abstract): AzureQueueService, LocalQueueService
    - ExecutorClient: synchronous prediction call to the external executor

Domain services (entity lifecycles):
    - DatasetService, ModelService, TaskService, DashboardService
    - AuthService: registration, login, bearer tokens

Domain services take their gateways in the constructor and a UnitOfWork
per call; instances are assembled in writerid_portal.dependencies.
"""
