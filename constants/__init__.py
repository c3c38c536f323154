# Validation limits shared by forms and services
