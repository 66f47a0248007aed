from merchandising.services.ai.gateway import ModelGateway


def get_model_gateway() -> ModelGateway:
    # 요청마다 설정 기반으로 생성 (테스트에서는 dependency_overrides 로 교체)
    return ModelGateway.from_settings()
