from bitget_bridge.common.logger import PipelineLogger

# 테스트 중에는 logs/ 디렉토리에 파일을 만들지 않는다
PipelineLogger.configure(level="DEBUG", log_to_file=False)
