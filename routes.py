from flask_restful import Api
from resources.incidents import (
    IncidentListResource, IncidentResource, ExportIncidentsCSVResource,
    ExportIncidentsExcelResource, ExportIncidentJSONResource, ImportIncidentsResource
)
from resources.enrich import EnrichResource, TranscribeResource, SanitizeResource
from resources.dashboard import StatsResource, HealthResource
from resources.riskmap import (
    RiskBoundsResource, RiskPointsResource, RiskPipelinesResource, RiskTopZonesResource, RiskAskResource
)


def register_routes(app, store, risk_store, classifier, transcriber, advisor):
    api = Api(app)
    prompt_version = app.config["PROMPT_VERSION"]

    api.add_resource(HealthResource, "/api/health",
                     resource_class_kwargs={"classifier": classifier})
    api.add_resource(EnrichResource, "/api/enrich",
                     resource_class_kwargs={"classifier": classifier})
    api.add_resource(TranscribeResource, "/api/transcribe",
                     resource_class_kwargs={"transcriber": transcriber})
    api.add_resource(SanitizeResource, "/api/sanitize")

    api.add_resource(IncidentListResource, "/api/incidents",
                     resource_class_kwargs={"store": store, "classifier": classifier,
                                            "prompt_version": prompt_version})
    api.add_resource(ExportIncidentsCSVResource, "/api/incidents/export.csv",
                     resource_class_kwargs={"store": store})
    api.add_resource(ExportIncidentsExcelResource, "/api/incidents/export.xlsx",
                     resource_class_kwargs={"store": store})
    api.add_resource(ImportIncidentsResource, "/api/incidents/import",
                     resource_class_kwargs={"store": store})
    api.add_resource(IncidentResource, "/api/incidents/<int:incident_id>",
                     resource_class_kwargs={"store": store})
    api.add_resource(ExportIncidentJSONResource, "/api/incidents/<int:incident_id>/export.json",
                     resource_class_kwargs={"store": store})

    api.add_resource(StatsResource, "/api/stats",
                     resource_class_kwargs={"store": store})

    api.add_resource(RiskBoundsResource, "/api/riskmap/bounds")
    api.add_resource(RiskPointsResource, "/api/riskmap/points",
                     resource_class_kwargs={"risk_store": risk_store})
    api.add_resource(RiskPipelinesResource, "/api/riskmap/pipelines",
                     resource_class_kwargs={"risk_store": risk_store})
    api.add_resource(RiskTopZonesResource, "/api/riskmap/topzones",
                     resource_class_kwargs={"risk_store": risk_store})
    api.add_resource(RiskAskResource, "/api/riskmap/ask",
                     resource_class_kwargs={"risk_store": risk_store, "advisor": advisor})

    return api
